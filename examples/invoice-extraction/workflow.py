"""发票抽取 Demo - 工作流实现"""

import json
import os

from openai import AsyncOpenAI

from extract_evo import date, name, numeric, unordered, within

# 字段比较器配置，extract-evo.yaml 中通过 workflow.comparators 引用
COMPARATORS = {
    "vendor": name,
    "invoice_date": date,
    "total": numeric,
    "line_items": unordered({
        "description": name,
        "amount": within(0.01),
    }),
}


async def run(document: str, system_prompt: str) -> dict:
    """
    从发票文本中抽取结构化字段

    Args:
        document: 发票原文
        system_prompt: 当前系统提示词（由评测/优化循环传入）

    Returns:
        抽取结果
    """
    client = AsyncOpenAI(api_key=os.environ.get("OPENAI_API_KEY"))

    response = await client.chat.completions.create(
        model="gpt-5-mini",
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": document},
        ],
        response_format={"type": "json_object"},
    )

    return json.loads(response.choices[0].message.content or "{}")
