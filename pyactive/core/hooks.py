"""
pyactive 钩子系统

每个模型类拥有一个 HookRegistry，按标签维护有序的回调列表。
关联正是通过销毁钩子把置空/级联行为挂到通用的生命周期事件上。

保留标签：
- before-destroy / after-destroy：参数为被销毁对象的 id
- before-selfdestruct / after-selfdestruct：无参数

使用方式：
    # 函数式注册
    Person.add_hook('before-destroy', audit)

    # 装饰器注册
    @Person.listens_for('after-destroy')
    def forget(person_id):
        cache.pop(person_id, None)

    # 移除
    Person.remove_hook('before-destroy', audit)
"""

import threading
from typing import Any, Callable, Dict, List, Optional, Set


BEFORE_DESTROY = 'before-destroy'
AFTER_DESTROY = 'after-destroy'
BEFORE_SELFDESTRUCT = 'before-selfdestruct'
AFTER_SELFDESTRUCT = 'after-selfdestruct'

RESERVED_HOOKS: Set[str] = {
    BEFORE_DESTROY, AFTER_DESTROY,
    BEFORE_SELFDESTRUCT, AFTER_SELFDESTRUCT,
}

Hook = Callable[..., Any]


class HookRegistry:
    """
    钩子注册表

    标签为任意字符串。回调按注册顺序调用，任何回调抛出异常都会中止本次调用中
    剩余的回调，并把异常原样抛给调用方。
    """

    def __init__(self) -> None:
        self._hooks: Dict[str, List[Hook]] = {}
        self._lock = threading.RLock()

    def add(self, tag: str, fn: Hook) -> None:
        """
        注册钩子

        Args:
            tag: 钩子标签
            fn: 回调函数
        """
        if not callable(fn):
            raise TypeError(f"Hook for '{tag}' must be callable, got {type(fn).__name__}")
        with self._lock:
            self._hooks.setdefault(tag, []).append(fn)

    def remove(self, tag: str, fn: Hook) -> None:
        """
        移除第一个匹配的钩子，未注册时忽略

        Args:
            tag: 钩子标签
            fn: 要移除的回调函数
        """
        with self._lock:
            hooks = self._hooks.get(tag, [])
            if fn in hooks:
                hooks.remove(fn)

    def call(self, tag: str, *args: Any, **kwargs: Any) -> None:
        """
        依次调用标签下的所有钩子

        Args:
            tag: 钩子标签
            *args: 透传给回调的参数
        """
        # 快照：回调内部可能增删钩子
        for fn in list(self._hooks.get(tag, [])):
            fn(*args, **kwargs)

    def listeners(self, tag: str) -> List[Hook]:
        """返回标签下钩子的副本"""
        return list(self._hooks.get(tag, []))

    def clear(self, tag: Optional[str] = None) -> None:
        """
        清除钩子

        Args:
            tag: 要清除的标签，None 清除所有
        """
        with self._lock:
            if tag is None:
                self._hooks.clear()
            else:
                self._hooks.pop(tag, None)

    def __contains__(self, tag: str) -> bool:
        return bool(self._hooks.get(tag))

    def __repr__(self) -> str:
        counts = {tag: len(hooks) for tag, hooks in self._hooks.items() if hooks}
        return f"HookRegistry({counts})"
