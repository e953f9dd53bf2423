"""
pyactive 事务与钩子示例

展示：
- transaction_do 回滚
- transaction() 上下文管理器
- before-destroy / after-destroy 钩子
"""

import os
import sys
from typing import Type

# 添加父目录到路径
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pyactive import Model, SQLiteStore, declarative_base, BEFORE_DESTROY, AFTER_DESTROY

print("=" * 70)
print("pyactive 事务与钩子示例")
print("=" * 70)

db = SQLiteStore.connect(':memory:')
Base: Type[Model] = declarative_base(db)
Account = Base.extend('Account', {'owner': 'string', 'balance': 'integer'})

alice = Account.create(owner='Alice', balance=100)
bob = Account.create(owner='Bob', balance=50)

# ============================================================================
# 1. 事务
# ============================================================================

print("\n1. 事务")


def transfer(amount: int) -> None:
    alice.set_attribute('balance', alice.balance - amount)
    if alice.balance < 0:
        raise ValueError("insufficient funds")
    bob.set_attribute('balance', bob.balance + amount)


try:
    Account.transaction_do(lambda: transfer(500))
except ValueError as e:
    print(f"   转账失败并回滚: {e}")
alice.refresh()
print(f"   Alice 余额: {alice.balance}")

with Account.transaction():
    transfer(30)
print(f"   成功转账后: Alice={alice.balance}, Bob={bob.balance}")

# ============================================================================
# 2. 钩子
# ============================================================================

print("\n2. 钩子")

Account.add_hook(BEFORE_DESTROY, lambda account_id: print(f"   即将销毁账户 {account_id}"))


@Account.listens_for(AFTER_DESTROY)
def closed(account_id: int) -> None:
    print(f"   账户 {account_id} 已销毁")


Account.destroy_all()

db.close()
print("\n完成")
