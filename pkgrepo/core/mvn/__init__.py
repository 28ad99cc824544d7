"""Maven 支持

- descriptor.py: Maven 坐标与 mvn:// URL
- repository.py: 远程仓库镜像地址
- pom.py: POM 解析（属性、parent 继承、dependencyManagement）
- manager.py: mvn:// 仓库管理器
"""
