"""请求级取消上下文

核心层的每个函数都显式接收一个 Context 作为第一个参数，
在检查点调用 ctx.check() 来观察取消或超时。取消是协作式的：
只有检查点会让它生效。
"""
import threading
import time
from typing import List, Optional

from .exceptions import Cancelled, ContextError, DeadlineExceeded


class Context:
    """
    可取消、可带截止时间的上下文

    示例用法:
        root = Context.background()
        ctx = root.with_timeout(2.0)
        try:
            ctx.sleep(0.5)
            ctx.check()
        finally:
            ctx.cancel()
    """

    def __init__(self, parent: Optional["Context"] = None, deadline: Optional[float] = None):
        """
        初始化上下文，一般通过 background()/with_cancel()/with_timeout() 创建

        Args:
            parent: 父上下文，父上下文取消时子上下文一同取消
            deadline: time.monotonic() 时间轴上的截止时间
        """
        self._parent = parent
        self._lock = threading.Lock()
        self._event = threading.Event()
        self._err: Optional[ContextError] = None
        self._children: List["Context"] = []

        # 子上下文的截止时间不能晚于父上下文
        if parent is not None and parent.deadline is not None:
            if deadline is None or parent.deadline < deadline:
                deadline = parent.deadline
        self._deadline = deadline

        if parent is not None:
            parent._attach(self)

    @classmethod
    def background(cls) -> "Context":
        """根上下文：自身永不超时，只能显式取消"""
        return cls()

    def with_cancel(self) -> "Context":
        return Context(parent=self)

    def with_timeout(self, seconds: float) -> "Context":
        return Context(parent=self, deadline=time.monotonic() + seconds)

    @property
    def deadline(self) -> Optional[float]:
        return self._deadline

    @property
    def done(self) -> bool:
        return self.err() is not None

    def cancel(self) -> None:
        """取消上下文及其全部子上下文（幂等，首个原因生效）"""
        self._finish(Cancelled())

    def err(self) -> Optional[ContextError]:
        """
        返回上下文结束的原因

        Returns:
            仍然有效时返回 None，否则返回 Cancelled 或 DeadlineExceeded
        """
        if self._err is None and self._deadline is not None:
            if time.monotonic() >= self._deadline:
                self._finish(DeadlineExceeded())
        return self._err

    def check(self) -> None:
        """检查点：上下文已结束时抛出对应异常"""
        err = self.err()
        if err is not None:
            raise err

    def sleep(self, seconds: float) -> None:
        """
        可取消的等待：计时器与取消信号竞争

        Args:
            seconds: 等待时长，<= 0 时只做一次检查

        Raises:
            Cancelled: 等待前或等待期间被取消
            DeadlineExceeded: 等待前或等待期间超时
        """
        end = time.monotonic() + seconds
        while True:
            self.check()
            remaining = end - time.monotonic()
            if remaining <= 0:
                return
            if self._deadline is not None:
                remaining = min(remaining, self._deadline - time.monotonic())
            self._event.wait(max(remaining, 0.0))

    def _attach(self, child: "Context") -> None:
        with self._lock:
            err = self._err
            if err is None:
                self._children.append(child)
                return
        child._finish(type(err)(str(err)))

    def _detach(self, child: "Context") -> None:
        with self._lock:
            if child in self._children:
                self._children.remove(child)

    def _finish(self, err: ContextError) -> None:
        with self._lock:
            if self._err is not None:
                return
            self._err = err
            children, self._children = self._children, []
        self._event.set()

        for child in children:
            child._finish(type(err)(str(err)))
        if self._parent is not None:
            self._parent._detach(self)

    def __repr__(self) -> str:
        state = "active" if self._err is None else type(self._err).__name__
        return f"<Context {state} deadline={self._deadline}>"
