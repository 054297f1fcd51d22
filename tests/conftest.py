"""
Pytest configuration and shared fixtures for the advice parser tests.
"""

import pytest

from advice_parser import AdviceMarkdownParser
from config import ParserConfig


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests (no external dependencies)")


@pytest.fixture
def parser():
    return AdviceMarkdownParser()


@pytest.fixture
def multiline_parser():
    return AdviceMarkdownParser(ParserConfig(multiline_statements=True))


@pytest.fixture
def citation_parser():
    return AdviceMarkdownParser(ParserConfig(extract_citations=True))


@pytest.fixture
def diet_markdown():
    return (
        "### 饮食建议\n"
        "减少糖分摄入。\n"
        "**参考文献:**\n"
        "[1][WHO Guidance](https://example.com/who)\n"
        "[2][CDC Report](https://example.com/cdc)"
    )


@pytest.fixture
def full_reply():
    """A complete reply in the shape the advice prompt asks for."""
    return (
        "根据您的数据，以下是今日建议：\n"
        "\n"
        "### 1. 运动建议\n"
        "今日步数偏少，建议晚饭后快走30分钟 [1]。\n"
        "\n"
        "爬楼梯是不错的补充 [1,2]。\n"
        "**参考文献:**\n"
        "[1][中国居民身体活动指南](http://www.sport.gov.cn) [2][WHO Physical Activity](https://www.who.int/pa)\n"
        "\n"
        "### 2. 睡眠建议\n"
        "保持7-9小时睡眠 **[3]**。\n"
        "**参考文献:**\n"
        "[3][中国居民睡眠指南](http://www.sleep.org.cn)\n"
    )
