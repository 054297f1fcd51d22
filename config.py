# config.py
from dataclasses import dataclass, field
from typing import Tuple

@dataclass
class ParserConfig:
    # Line markers
    heading_marker: str = "###"
    references_marker: str = "**参考文献:**"
    # e.g. "[1][WHO Guidance](https://example.com/who)"
    reference_regex: str = r"\[(\d+)\]\[(.*?)\]\((.*?)\)"
    # Statement granularity: False -> one statement per non-blank line
    multiline_statements: bool = False
    # Inline citations such as "[1,2]" after a statement
    extract_citations: bool = False
    citation_regex: str = r"\[(\d+(?:\s*[,，、]\s*\d+)*)\](?![\[(])"

@dataclass
class PromptConfig:
    system_prompt: str = (
        "你是一个专业的健康顾问，基于用户的健康数据提供个性化的建议。"
        "建议应该具体、可操作、并考虑到用户的各项健康指标。"
        "请从运动建议、睡眠建议、饮食建议和今日特别注意事项四个方面来提供建议。"
    )
    disclaimer: str = (
        "免责声明：\n"
        "此AI分析仅供参考，不构成任何医疗建议。AI提供的分析仅基于输入的数据进行客观描述，\n"
        "不涉及任何医疗诊断、治疗建议或健康指导。如有任何健康问题，请咨询专业医生。"
    )
    used_parameters_label: str = "使用的参数："
    topics: Tuple[str, ...] = (
        "运动建议 (结合今日步数、活动消耗、运动距离、爬楼等数据，尤其关注当日数据)",
        "睡眠建议 (结合最近睡眠时长)",
        "饮食建议 (结合体重、体脂率、血糖血脂尿酸、BMI等数据)",
        "今日特别注意事项 (综合所有数据，给出今日需要特别关注的健康问题)",
    )
@dataclass
class AppConfig:
    parser: ParserConfig = field(default_factory=ParserConfig)
    prompt: PromptConfig = field(default_factory=PromptConfig)

# Global defaults used across modules
DEFAULTS = AppConfig()
