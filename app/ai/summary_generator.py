"""
AI course summary generator.

Calls an OpenAI-compatible chat completions endpoint (DeepSeek by default)
and parses its JSON answer into a CourseSummary. The rest of the
application only relies on is_available() and generate(); tests swap in a
fake with the same two methods.
"""

import json
import logging
from typing import Optional, Sequence

import httpx
from pydantic import ValidationError as PydanticValidationError

from app.config import settings
from app.errors import UpstreamError
from app.models.course import Course
from app.models.review import Review
from app.schemas.summary import CourseSummary

logger = logging.getLogger(__name__)

PLACEHOLDER_API_KEY = "sk-your-api-key-here"

SYSTEM_PROMPT = """你是一个客观、公正的课程评价分析师。你的任务是根据提供的课程信息和大量学生评价，生成一份全面、客观的课程总结报告。

要求：
1. 总结必须客观中立，综合正面和负面反馈
2. 分析维度包括：总体评价、课程难度/作业量、教师授课风格、优缺点分析
3. 语言简洁明了，使用中文

必须严格按照以下JSON格式输出：
{
  "overall": "总体评价摘要（50-100字）",
  "difficulty": "课程难度与作业量分析",
  "teaching": "教师授课风格与质量分析",
  "pros": ["优点1", "优点2", "优点3"],
  "cons": ["缺点1", "缺点2"],
  "suggestion": "给未来选课学生的建议"
}"""


def build_user_prompt(course: Course, reviews: Sequence[Review], total_count: int) -> str:
    lines = [
        "课程信息：",
        f"代码：{course.code}",
        f"名称：{course.name}",
    ]
    if course.teacher is not None:
        lines.append(f"教师：{course.teacher.name}")
    lines.append(f"简介：{course.description or '无'}")
    lines.append("")

    header = f"学生评价集合（共{total_count}条"
    if total_count > len(reviews):
        header += f"，随机抽取{len(reviews)}条"
    lines.append(header + "）：")

    for index, review in enumerate(reviews, start=1):
        lines.append(f"{index}. 评分：{review.rating}分 | 内容：{review.content}")

    lines.append("")
    lines.append("请根据以上信息生成课程总结。")
    return "\n".join(lines)


class DeepSeekSummaryGenerator:
    """Summary generator backed by a chat completions HTTP API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        model: Optional[str] = None,
        enabled: Optional[bool] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.AI_API_KEY
        self.api_url = (api_url or settings.AI_API_URL).rstrip("/")
        self.model = model or settings.AI_MODEL
        self.enabled = settings.AI_ENABLED if enabled is None else enabled
        self.timeout = timeout or settings.AI_TIMEOUT_SECONDS
        self._transport = transport

    def is_available(self) -> bool:
        return bool(self.enabled and self.api_key and self.api_key != PLACEHOLDER_API_KEY)

    def generate(self, course: Course, reviews: Sequence[Review], total_count: int) -> CourseSummary:
        """
        Produce a summary for the given reviews.

        Raises:
            UpstreamError: On timeout, transport failure, non-200 status or
                an answer that is not the expected JSON object.
        """
        payload = {
            "model": self.model,
            "temperature": 0.5,
            "max_tokens": 1000,
            "response_format": {"type": "json_object"},
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_user_prompt(course, reviews, total_count)},
            ],
        }
        url = f"{self.api_url}/chat/completions"
        logger.info("Requesting AI summary for course %s from %s", course.code, url)

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(
                    url,
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
                response.raise_for_status()
            content = response.json()["choices"][0]["message"]["content"]
            return CourseSummary.model_validate(json.loads(content))
        except httpx.TimeoutException as exc:
            logger.error("AI summary request for course %s timed out: %s", course.code, exc)
            raise UpstreamError("AI服务响应超时，请稍后再试")
        except httpx.HTTPError as exc:
            logger.error("AI summary request for course %s failed: %s", course.code, exc)
            raise UpstreamError()
        except (KeyError, IndexError, TypeError, ValueError, PydanticValidationError) as exc:
            logger.error("AI summary for course %s was not valid JSON: %s", course.code, exc)
            raise UpstreamError("AI服务返回的数据无法解析")


_default_generator: Optional[DeepSeekSummaryGenerator] = None


def get_summary_generator() -> DeepSeekSummaryGenerator:
    global _default_generator
    if _default_generator is None:
        _default_generator = DeepSeekSummaryGenerator()
    return _default_generator
