"""
Engine 子系统：目录、权限检查与对象大小组合。

模块清单：
- errors: 错误分类
- cancellation: 协作式取消
- catalog_manager: 数据库/表空间/关系/角色元数据
- access_control: 解析标识并做权限检查
- size_calculator: 表、索引、数据库、表空间大小的组合计算
"""
