"""
pyactive 关联示例

展示五种关联的使用方式：
- belongs_to：多对一
- has_one：一对一（外键在目标方）
- holds_one：一对一（外键在声明方，声明方拥有目标）
- has_many：一对多
- has_and_belongs_to_many：多对多（自动创建连接类）
以及置空与级联销毁策略。
"""

import os
import sys
from typing import Type

# 添加父目录到路径
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pyactive import Model, SQLiteStore, declarative_base

print("=" * 70)
print("pyactive 关联示例")
print("=" * 70)

db = SQLiteStore.connect(':memory:')
Base: Type[Model] = declarative_base(db)

# ============================================================================
# 1. belongs_to / has_many
# ============================================================================

print("\n1. belongs_to / has_many")

City = Base.extend('City', {'name': 'string'})
Citizen = Base.extend('Citizen', {'name': 'string'})
Citizen.belongs_to(City)
City.has_many(Citizen, attribute_name='citizens', foreign_key='city_id')

gotham = City.create(name='Gotham')
bruce = Citizen.create(name='Bruce', city=gotham)
gotham.citizens_add(Citizen.create(name='Alfred'))

print(f"   {bruce.name} 住在 {bruce.city.name}")
print(f"   {gotham.name} 的居民: {[c.name for c in gotham.citizens]}")

gotham.destroy()
print(f"   城市销毁后 bruce.city_id = {Citizen.first(bruce.id).city_id}（哨兵值 0）")

# ============================================================================
# 2. has_one（级联销毁）
# ============================================================================

print("\n2. has_one")

Person = Base.extend('Person', {'name': 'string'})
Passport = Base.extend('Passport', {'number': 'string'})
Person.has_one(Passport, dependency='destroy')

jim = Person.create(name='Jim', passport=Passport.create(number='A-1'))
print(f"   {jim.name} 的护照: {jim.passport.number}")

jim.passport = Passport.create(number='B-2')
jim.save()  # 属性赋值在 save() 时写入
print(f"   更换后剩余护照: {[p.number for p in Passport.all()]}")

jim.destroy()
print(f"   销毁 Jim 后护照数量: {Passport.count()}")

# ============================================================================
# 3. holds_one
# ============================================================================

print("\n3. holds_one")

Car = Base.extend('Car', {'model': 'string'})
Driver = Base.extend('Driver', {'name': 'string'})
Driver.holds_one(Car, dependency='destroy')

tumbler = Car.create(model='Tumbler')
batman = Driver.create(name='Batman', car=tumbler)
print(f"   {batman.name} 驾驶 {batman.car.model}，外键 car_id={batman.car_id}")

batman.destroy()
print(f"   驾驶员销毁后车辆数量: {Car.count()}")

# ============================================================================
# 4. has_and_belongs_to_many
# ============================================================================

print("\n4. has_and_belongs_to_many")

Developer = Base.extend('Developer', {'name': 'string'})
Project = Base.extend('Project', {'name': 'string'})
Developer.has_and_belongs_to_many(Project, attribute_name='projects')
Project.has_and_belongs_to_many(Developer, attribute_name='developers')

ana = Developer.create(name='Ana')
luasql = Project.create(name='LuaSQL')
ana.projects_add(luasql)
ana.projects_add(luasql)  # 重复添加被忽略

Join = Base.__registry__.get('DeveloperProject')
print(f"   连接表: {Join.table_name()}，行数: {Join.count()}")
print(f"   {ana.name} 参与: {[p.name for p in ana.projects]}")
print(f"   {luasql.name} 成员: {[d.name for d in luasql.developers]}")

Project.self_destruct()
print(f"   Project 自毁后连接表存在: {db.table_exists('developerproject')}")

db.close()
print("\n完成")
