# advice_prompt.py
"""
Builds the prompt sent upstream for health advice.

Only metrics present in the health data with the expected shape are listed;
the reply format instructions match the markers AdviceMarkdownParser reads.
"""

from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from config import DEFAULTS, ParserConfig, PromptConfig


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _num(value: Any) -> str:
    return str(float(value))


def _sleep_line(sleep: Any) -> Optional[str]:
    if not isinstance(sleep, Mapping):
        return None
    hours, minutes = sleep.get("hours"), sleep.get("minutes")
    if not (_is_int(hours) and _is_int(minutes)):
        return None
    return f"最近睡眠时长: {hours}小时{minutes}分钟"


def _blood_pressure_line(bp: Any) -> Optional[str]:
    if not isinstance(bp, Mapping):
        return None
    systolic, diastolic = bp.get("systolic"), bp.get("diastolic")
    if not (_is_number(systolic) and _is_number(diastolic)):
        return None
    return f"今日血压: {int(systolic)}/{int(diastolic)} mmHg (当日数据)"


def _simple(template: str, check: Callable[[Any], bool], fmt: Callable[[Any], str] = str):
    def render(value: Any) -> Optional[str]:
        return template.format(fmt(value)) if check(value) else None
    return render


# key -> renderer returning the prompt line, or None when the value has the wrong shape
METRIC_LINES: Tuple[Tuple[str, Callable[[Any], Optional[str]]], ...] = (
    ("steps", _simple("今日步数: {}步 (当日数据)", _is_int)),
    ("sleep", _sleep_line),
    ("heartRate", _simple("最近心率: {}次/分钟 (当日数据)", _is_int)),
    ("activeEnergy", _simple("今日活动消耗: {}千卡 (当日数据)", _is_number, _num)),
    ("restingEnergy", _simple("今日静息消耗: {}千卡 (当日数据)", _is_number, _num)),
    ("distance", _simple("今日运动距离: {}公里 (当日数据)", _is_number, _num)),
    ("bloodOxygen", _simple("血氧饱和度: {}% (当日数据)", _is_number, _num)),
    ("bodyFat", _simple("体脂率: {}%", _is_number, _num)),
    ("flightsClimbed", _simple("今日爬楼: {} 层 (当日数据)", _is_int)),
    ("weight", _simple("今日体重: {} 公斤 (当日数据)", _is_number, _num)),
    ("bloodPressure", _blood_pressure_line),
    ("bloodSugar", _simple("今日血糖: {} mmol/L (当日数据)", _is_number, _num)),
    ("bloodLipids", _simple("今日血脂: {} mg/dL", _is_number, _num)),
    ("uricAcid", _simple("今日尿酸: {} umol/L", _is_number, _num)),
    ("bmi", _simple("最近BMI: {}", _is_number, lambda v: f"{float(v):.1f}")),
)


def _metric_lines(health_data: Mapping[str, Any]) -> List[Tuple[str, str]]:
    out: List[Tuple[str, str]] = []
    for key, render in METRIC_LINES:
        if key not in health_data:
            continue
        line = render(health_data[key])
        if line is not None:
            out.append((key, line))
    return out


def extract_used_parameters(health_data: Mapping[str, Any]) -> List[str]:
    """Keys of the metrics that make it into the prompt, in prompt order."""
    return [key for key, _ in _metric_lines(health_data)]


def build_advice_prompt(
    health_data: Mapping[str, Any],
    user_description: Optional[str] = None,
    user_age: Optional[int] = None,
    user_gender: Optional[str] = None,
    *,
    cfg: Optional[PromptConfig] = None,
    parser_cfg: Optional[ParserConfig] = None,
) -> str:
    cfg = cfg or DEFAULTS.prompt
    parser_cfg = parser_cfg or DEFAULTS.parser

    demographics: List[str] = []
    if user_age is not None:
        demographics.append(f"用户年龄: {user_age} 岁")
    if user_gender:
        demographics.append(f"用户性别: {user_gender}")
    description = f"用户描述: {user_description}" if user_description else ""

    intro = (
        f"请基于以下用户{'年龄和性别等' if demographics else ''}信息，"
        f"并重点考虑用户当日的健康数据{'和用户描述' if description else ''}，给出个性化的健康建议："
    )
    lines = [intro]
    lines.extend(demographics)
    lines.extend(line for _, line in _metric_lines(health_data))
    if description:
        lines.append(description)

    lines.append("")
    lines.append(
        "请从以下几个方面给出建议，**每条建议都请给出权威来源引用**，引用以 **[来源编号]** 的形式放在建议后。"
        "**如果可以找到对应参考文献的网页链接，请一并提供，并在文末的来源信息中包含链接地址**。例如："
    )
    lines.extend(f"{i}. {topic}" for i, topic in enumerate(cfg.topics, 1))
    lines.append("")
    lines.append(
        f"每个方面以 `{parser_cfg.heading_marker} 标题` 单独成行开头；"
        f"参考文献放在该方面末尾，以 `{parser_cfg.references_marker}` 单独成行开头，"
        "每条写作 `[编号][标题](链接)`。"
    )
    lines.append(
        "建议要具体可执行，并针对用户数据的特点给出个性化建议。"
        "**请确保所有医疗健康建议都有可靠的来源引用，并尽可能提供参考文献的网页链接。**"
    )
    return "\n".join(lines)


def build_chat_messages(prompt: str, cfg: Optional[PromptConfig] = None) -> List[Dict[str, str]]:
    """System + user message list for a chat-completion request."""
    cfg = cfg or DEFAULTS.prompt
    return [
        {"role": "system", "content": cfg.system_prompt},
        {"role": "user", "content": prompt},
    ]
