"""
Unit tests for the advice prompt builder.
"""

import pytest

from advice_prompt import build_advice_prompt, build_chat_messages, extract_used_parameters
from config import ParserConfig, PromptConfig


@pytest.fixture
def health_data():
    return {
        "steps": 8000,
        "sleep": {"hours": 7, "minutes": 30},
        "heartRate": 72,
        "activeEnergy": 350,
        "bloodPressure": {"systolic": 118.6, "diastolic": 76.2},
        "bmi": 22.456,
    }


@pytest.mark.unit
class TestBuildAdvicePrompt:
    """Metric lines, demographics and reply format instructions."""

    def test_metric_lines(self, health_data):
        prompt = build_advice_prompt(health_data)
        assert "今日步数: 8000步 (当日数据)" in prompt
        assert "最近睡眠时长: 7小时30分钟" in prompt
        assert "最近心率: 72次/分钟 (当日数据)" in prompt
        assert "今日活动消耗: 350.0千卡 (当日数据)" in prompt
        assert "今日血压: 118/76 mmHg (当日数据)" in prompt
        assert "最近BMI: 22.5" in prompt

    def test_metric_order_follows_table(self, health_data):
        prompt = build_advice_prompt(health_data)
        assert prompt.index("今日步数:") < prompt.index("最近睡眠时长:") < prompt.index("最近BMI:")

    def test_wrong_shapes_skipped(self):
        prompt = build_advice_prompt({
            "steps": "8000",
            "heartRate": True,
            "sleep": {"hours": 7},
            "bloodPressure": 120,
            "weight": 60,
        })
        assert "今日步数:" not in prompt
        assert "最近心率:" not in prompt
        assert "最近睡眠时长:" not in prompt
        assert "今日血压:" not in prompt
        assert "今日体重: 60.0 公斤 (当日数据)" in prompt

    def test_intro_without_demographics(self):
        prompt = build_advice_prompt({})
        assert prompt.splitlines()[0] == "请基于以下用户信息，并重点考虑用户当日的健康数据，给出个性化的健康建议："

    def test_demographics_and_description(self, health_data):
        prompt = build_advice_prompt(health_data, user_description="最近容易疲劳", user_age=35, user_gender="女")
        lines = prompt.splitlines()
        assert lines[0] == (
            "请基于以下用户年龄和性别等信息，并重点考虑用户当日的健康数据和用户描述，给出个性化的健康建议："
        )
        assert lines[1] == "用户年龄: 35 岁"
        assert lines[2] == "用户性别: 女"
        assert prompt.count("今日步数: 8000步") == 1
        assert "用户描述: 最近容易疲劳" in prompt

    def test_topics_numbered(self):
        cfg = PromptConfig(topics=("运动", "睡眠"))
        lines = build_advice_prompt({}, cfg=cfg).splitlines()
        assert "1. 运动" in lines
        assert "2. 睡眠" in lines

    def test_format_instructions_use_parser_markers(self):
        parser_cfg = ParserConfig(heading_marker="####", references_marker="**Sources:**")
        prompt = build_advice_prompt({}, parser_cfg=parser_cfg)
        assert "`#### 标题`" in prompt
        assert "`**Sources:**`" in prompt
        assert "[编号][标题](链接)" in prompt


@pytest.mark.unit
class TestHelpers:
    """Used-parameter extraction and chat messages."""

    def test_extract_used_parameters(self, health_data):
        health_data["uricAcid"] = "high"
        assert extract_used_parameters(health_data) == [
            "steps", "sleep", "heartRate", "activeEnergy", "bloodPressure", "bmi",
        ]

    def test_build_chat_messages(self):
        messages = build_chat_messages("提示")
        assert [m["role"] for m in messages] == ["system", "user"]
        assert messages[0]["content"].startswith("你是一个专业的健康顾问")
        assert messages[1]["content"] == "提示"
