"""测试用例模型 / Test case models"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class TestCase(BaseModel):
    """单个测试用例：一个输入，一个期望输出（任意嵌套结构）

    A single test case: one input and the expected output, which may be any
    nested shape.
    """
    __test__ = False

    input: Any = Field(..., description="传给工作流的输入")
    expected: Any = Field(default=None, description="期望输出")


class TestSuite(BaseModel):
    """测试套件（YAML 文件）/ Test suite (one YAML file)"""
    __test__ = False

    name: str = Field(..., description="套件名称")
    description: Optional[str] = Field(default=None)
    cases: list[TestCase] = Field(..., description="测试用例列表")
