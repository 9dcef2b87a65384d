"""领域层模型与协议。

包含：
- models: Message / Role 会话消息模型。
- conversation: 支持订阅的内存 ConversationStore。
- exceptions: 业务异常与补全传输错误类型。
"""
