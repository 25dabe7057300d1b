import contextlib
import time
import typing


def format_duration(seconds: float) -> str:
    """将秒数格式化为"Xm Ys"的形式"""
    minutes, seconds = divmod(round(seconds), 60)
    return f"{minutes}m {seconds}s"


class run_report:
    """记录一次运行中各阶段的耗时"""

    phase_list: dict[str, float]  # 阶段名 -> 耗时(秒)，按执行顺序排列
    start_time: float  # 运行开始的时间
    end_time: float | None  # 运行结束的时间

    def __init__(self) -> None:
        self.phase_list = {}
        self.start_time = time.perf_counter()
        self.end_time = None

    @contextlib.contextmanager
    def phase(self, name: str) -> typing.Iterator[None]:
        """记录with块内的耗时，阶段失败时同样记录"""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.phase_list[name] = time.perf_counter() - start

    def finish(self) -> None:
        self.end_time = time.perf_counter()

    @property
    def total(self) -> float:
        return (self.end_time or time.perf_counter()) - self.start_time

    def dump(self) -> None:
        """打印各阶段耗时"""
        print("[gcc_builder] Time summary:")
        for name, seconds in self.phase_list.items():
            print(f"\t{name}: {format_duration(seconds)}")
        print(f"\ttotal: {format_duration(self.total)}")


__all__ = ["format_duration", "run_report"]
