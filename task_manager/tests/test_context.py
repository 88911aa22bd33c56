"""取消上下文测试"""

import threading
import time

import pytest

from task_manager.context import Context
from task_manager.exceptions import Cancelled, ContextError, DeadlineExceeded


class TestCancel:
    """测试显式取消"""

    def test_background_is_active(self):
        """测试根上下文默认有效"""
        ctx = Context.background()
        assert ctx.err() is None
        assert ctx.done is False
        assert ctx.deadline is None
        ctx.check()

    def test_cancel_sets_cancelled(self):
        """测试取消后检查点抛出 Cancelled"""
        ctx = Context.background()
        ctx.cancel()
        assert isinstance(ctx.err(), Cancelled)
        with pytest.raises(Cancelled):
            ctx.check()

    def test_cancel_is_idempotent(self):
        """测试重复取消保留首个原因"""
        ctx = Context.background().with_timeout(0)
        assert isinstance(ctx.err(), DeadlineExceeded)
        ctx.cancel()
        assert isinstance(ctx.err(), DeadlineExceeded)

    def test_parent_cancel_propagates_to_children(self):
        """测试父上下文取消时子孙上下文一同取消"""
        root = Context.background()
        child = root.with_cancel()
        grandchild = child.with_timeout(60)
        root.cancel()
        assert isinstance(child.err(), Cancelled)
        assert isinstance(grandchild.err(), Cancelled)

    def test_child_cancel_leaves_parent_active(self):
        """测试子上下文取消不影响父上下文"""
        root = Context.background()
        child = root.with_cancel()
        child.cancel()
        assert child.done
        assert root.err() is None

    def test_child_of_cancelled_parent_starts_cancelled(self):
        """测试从已取消的父上下文派生的子上下文立即取消"""
        root = Context.background()
        root.cancel()
        assert isinstance(root.with_cancel().err(), Cancelled)

    def test_cancel_errors_are_context_errors(self):
        """测试取消与超时都属于 ContextError，且与 OSError 区分"""
        assert issubclass(Cancelled, ContextError)
        assert issubclass(DeadlineExceeded, ContextError)
        assert not issubclass(Cancelled, OSError)


class TestDeadline:
    """测试截止时间"""

    def test_expired_timeout(self):
        """测试截止时间已过时返回 DeadlineExceeded"""
        ctx = Context.background().with_timeout(0)
        with pytest.raises(DeadlineExceeded):
            ctx.check()

    def test_child_deadline_capped_by_parent(self):
        """测试子上下文截止时间不晚于父上下文"""
        parent = Context.background().with_timeout(1)
        child = parent.with_timeout(60)
        assert child.deadline == parent.deadline

    def test_shorter_child_deadline_kept(self):
        """测试子上下文可以有更早的截止时间"""
        parent = Context.background().with_timeout(60)
        child = parent.with_timeout(1)
        assert child.deadline < parent.deadline


class TestSleep:
    """测试可取消的等待"""

    def test_sleep_completes(self):
        """测试未取消时等待正常结束"""
        ctx = Context.background()
        start = time.monotonic()
        ctx.sleep(0.05)
        assert time.monotonic() - start >= 0.05

    def test_sleep_zero_only_checks(self):
        """测试时长为 0 时只做一次检查"""
        ctx = Context.background()
        ctx.sleep(0)
        ctx.cancel()
        with pytest.raises(Cancelled):
            ctx.sleep(0)

    def test_sleep_interrupted_by_cancel(self):
        """测试其他线程取消时等待立即结束"""
        ctx = Context.background()
        timer = threading.Timer(0.05, ctx.cancel)
        timer.start()
        start = time.monotonic()
        try:
            with pytest.raises(Cancelled):
                ctx.sleep(5)
        finally:
            timer.cancel()
        assert time.monotonic() - start < 2

    def test_sleep_longer_than_deadline(self):
        """测试等待时长超过截止时间时抛出 DeadlineExceeded"""
        ctx = Context.background().with_timeout(0.05)
        start = time.monotonic()
        with pytest.raises(DeadlineExceeded):
            ctx.sleep(5)
        assert time.monotonic() - start < 2

    def test_sleep_interrupted_by_parent_cancel(self):
        """测试父上下文取消能打断子上下文的等待"""
        root = Context.background()
        child = root.with_timeout(10)
        timer = threading.Timer(0.05, root.cancel)
        timer.start()
        try:
            with pytest.raises(Cancelled):
                child.sleep(5)
        finally:
            timer.cancel()
