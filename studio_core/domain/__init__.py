"""领域层模型与协议。

包含：
- models: Turn / RunOutcome / TranscriptEntry / SessionRecord 等数据模型。
- conversation: 按 Provider 划分的对话历史 ConversationStore。
- exceptions: 业务异常类型定义。
"""
