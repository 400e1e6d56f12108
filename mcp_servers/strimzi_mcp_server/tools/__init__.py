"""
Strimzi MCP Server - 工具集

每个子模块提供一个 FACTORY（ToolFactory），由 server.py 按 --toolsets 选择加载：
- kafka: Kafka 集群状态、监听地址、滚动重启、节点池扩缩容
- topic: KafkaTopic 的增删改查、未就绪排查、Topic Operator 状态、配置对比
- user: KafkaUser 的增删改查、凭据、ACL、配额、User Operator 状态
- cluster: 节点池、Kafka Connect / Connector、Rebalance、MirrorMaker2、Bridge、Cluster Operator 状态
- observability: 日志、事件、Pod 详情、健康检查
- security: 凭据轮换、证书列表与过期检查
- utility: YAML 导出、版本信息、资源总览
"""

TOOLSETS = ("kafka", "topic", "user", "cluster", "observability", "security", "utility")

__all__ = ["TOOLSETS"]
