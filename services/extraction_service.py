# services/extraction_service.py
"""LLM 기반 지원사업 자격 요건 구조화 추출 서비스"""
import asyncio
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage
from langchain_core.callbacks import UsageMetadataCallbackHandler
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log
)

from models.announcement import (
    ApplicationTarget,
    NarrativeSummary,
    UNRESTRICTED_COMPANY_AGE,
    UNRESTRICTED_REGION,
    UNRESTRICTED_AGE,
    UNRESTRICTED_INDUSTRY,
    DEFAULT_SUPPORT_FIELD,
)

logger = logging.getLogger(__name__)


TARGET_EXTRACTION_PROMPT = """
제공된 창업지원사업 공고문(이미지/텍스트)을 분석하여 핵심 정보를 JSON 형식으로 추출해줘.
이미지가 여러 장이면 하나의 공고문을 위에서부터 순서대로 자른 조각이니, 순서대로 이어서 읽어.
다음 5가지 항목을 정확하게 파악하여 값을 채워야 해.

1. **companyAge**: 신청 가능한 **업력(창업기간)** 요건을 명확히 추출.
   - 예: "예비창업자", "3년 미만", "7년 이내", "무관"
   - **중요**: "1년 미만, 3년 미만, 7년 미만" 등 여러 구간이 나열되어 있다면, 이를 모두 포괄하는 **가장 넓은 범위 하나만** 기재할 것. (예: "7년 미만")
2. **targetRegion**: 사업장 소재지 등 **지역 제한**이 있는지 확인.
   - 예: "서울", "경기도", "전국", "제주"
3. **targetAge**: 대표자 **연령 제한**이 있는지 확인.
   - 예: "만 39세 이하", "만 19세~39세", "무관"
   - **중요**: 사실상 전연령이거나 넓은 범위라면 **"만 20세 이상"** 또는 **"무관"** 등으로 단순화하여 핵심만 기재할 것.
4. **targetIndustry**: 특정 **업종/분야**만 지원한다면 기재.
   - 예: "정보통신업", "제조업", "바이오", "전분야(일반)"
5. **supportField**: 이 사업이 제공하는 **지원 유형**을 분류.
   - 반드시 다음 중 하나로 분류: "자금", "기술개발", "멘토링", "수출", "시설/공간", "인력", "판로", "교육", "기타"

**주의사항**:
- 공고문 이미지 내에 있는 표(Table) 내용을 꼼꼼히 확인해. 자격 요건은 보통 표 안에 있어.
- 값이 명시되지 않았거나 제한이 없어 보이면 "무관", "전국" 등으로 합리적으로 기재해. ("확인불가" X, 빈값 X)
- 매칭 시스템이 활용할 수 있는 단어로 짧게 요약해줘.
"""

NARRATIVE_EXTRACTION_PROMPT = """
제공된 창업지원사업 공고문(이미지/텍스트)을 읽고 신청자가 이해하기 쉽게 정리해줘.
이미지가 여러 장이면 하나의 공고문을 위에서부터 순서대로 자른 조각이니, 순서대로 이어서 읽어.

1. **aiSummary**: 사업 목적과 지원 내용을 3문장 이내로 요약
2. **targetDetail**: 신청 자격(업력, 지역, 연령, 업종 등)을 빠짐없이 서술
3. **exclusionDetail**: 신청 제외 대상. 없으면 "없음"
"""

JSON_OUTPUT_SUFFIX = "\n\n결과를 반드시 JSON으로 출력해."

TARGET_SCHEMA: Dict[str, Any] = {
    "title": "ApplicationTarget",
    "type": "object",
    "properties": {
        "companyAge": {"type": "string"},
        "targetRegion": {"type": "string"},
        "targetAge": {"type": "string"},
        "targetIndustry": {"type": "string"},
        "supportField": {"type": "string"},
    },
    "required": ["companyAge", "targetRegion", "targetAge", "targetIndustry", "supportField"],
}

NARRATIVE_SCHEMA: Dict[str, Any] = {
    "title": "NarrativeSummary",
    "type": "object",
    "properties": {
        "aiSummary": {"type": "string"},
        "targetDetail": {"type": "string"},
        "exclusionDetail": {"type": "string"},
    },
    "required": ["aiSummary", "targetDetail", "exclusionDetail"],
}


@dataclass(frozen=True)
class PromptVariant:
    name: str
    instruction: str
    schema: Dict[str, Any]


TARGET_VARIANT = PromptVariant("target", TARGET_EXTRACTION_PROMPT, TARGET_SCHEMA)
NARRATIVE_VARIANT = PromptVariant("narrative", NARRATIVE_EXTRACTION_PROMPT, NARRATIVE_SCHEMA)


# ========== 지원분야 키워드 추론 ==========

SUPPORT_FIELD_KEYWORDS = [
    ("자금", ["비용 지원", "자금 지원", "보조금", "장려금", "지원금", "융자", "투자", "출자"]),
    ("기술개발", ["r&d", "연구개발", "기술개발", "기술사업화", "제품화", "시제품", "특허"]),
    ("멘토링", ["멘토링", "컨설팅", "코칭", "자문", "상담"]),
    ("수출", ["수출", "해외진출", "글로벌", "해외", "무역"]),
    ("시설/공간", ["입주", "공간", "사무실", "보육센터", "작업장"]),
    ("인력", ["인력", "채용", "고용", "인건비", "청년인턴"]),
    ("판로", ["판로", "마케팅", "홍보", "전시회", "박람회"]),
    ("교육", ["교육", "아카데미", "캠프", "워크숍", "세미나"]),
]

_MONEY_PATTERN = re.compile(r"\d+\s*(억|만|천)\s*원")


def infer_support_field(description: str) -> Optional[str]:
    """키워드 기반 지원분야 추론 (LLM 호출 없음). 추론 실패 시 None."""
    if not description:
        return None

    text = description.lower()
    for field_name, keywords in SUPPORT_FIELD_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return field_name
        if field_name == "자금" and _MONEY_PATTERN.search(text):
            return field_name
    return None


# ========== 응답 파싱 ==========

def _as_text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _content_to_text(content: Any) -> str:
    """LangChain 메시지 content (str 또는 part 리스트) → 문자열."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            part if isinstance(part, str) else str(part.get("text", ""))
            for part in content
            if isinstance(part, (str, dict))
        )
    return ""


def _load_json_object(payload: Any) -> Optional[Dict[str, Any]]:
    if isinstance(payload, dict):
        return payload
    try:
        data = json.loads(_content_to_text(payload))
    except (json.JSONDecodeError, TypeError) as e:
        logger.error(f"JSON Parse Error: {e}")
        return None
    if not isinstance(data, dict):
        logger.error(f"JSON Parse Error: expected object, got {type(data).__name__}")
        return None
    return data


def parse_target_response(payload: Any) -> ApplicationTarget:
    """
    LLM 응답 → ApplicationTarget.
    파싱에 실패하면 모든 항목이 '제한 없음' 기본값인 결과를 돌려준다.
    """
    data = _load_json_object(payload)
    if data is None:
        return ApplicationTarget()

    return ApplicationTarget(
        company_age=_as_text(data.get("companyAge")) or UNRESTRICTED_COMPANY_AGE,
        target_region=_as_text(data.get("targetRegion")) or UNRESTRICTED_REGION,
        target_age=_as_text(data.get("targetAge")) or UNRESTRICTED_AGE,
        target_industry=_as_text(data.get("targetIndustry")) or UNRESTRICTED_INDUSTRY,
        support_field=_as_text(data.get("supportField")) or DEFAULT_SUPPORT_FIELD,
        ai_summary=_as_text(data.get("aiSummary")) or None,
        target_detail=_as_text(data.get("targetDetail")) or None,
        exclusion_detail=_as_text(data.get("exclusionDetail")) or None,
    )


def parse_narrative_response(payload: Any) -> NarrativeSummary:
    data = _load_json_object(payload) or {}
    return NarrativeSummary(
        ai_summary=_as_text(data.get("aiSummary")),
        target_detail=_as_text(data.get("targetDetail")),
        exclusion_detail=_as_text(data.get("exclusionDetail")),
    )


# ========== 추출기 ==========

class StructuredExtractor:
    """
    공고문 이미지 조각 또는 원문 텍스트를 LLM 에 보내 구조화된 결과를 받는다.
    LLM 클라이언트는 생성 시 주입받아 동시 호출 간에 읽기 전용으로 공유한다.
    """

    def __init__(
        self,
        llm: Optional[BaseChatModel],
        timeout: float = 90.0,
        text_timeout: float = 60.0,
    ):
        self.llm = llm
        self.timeout = timeout
        self.text_timeout = text_timeout

    @staticmethod
    def build_image_content(
        images: Sequence[str],
        mime_type: str,
        variant: PromptVariant,
    ) -> List[Dict[str, Any]]:
        """지시문 + 이미지 조각(원래 순서 유지) + 출력 형식 안내."""
        content: List[Dict[str, Any]] = [{"type": "text", "text": variant.instruction}]
        for img in images:
            content.append({
                "type": "image_url",
                "image_url": {"url": f"data:{mime_type};base64,{img}"},
            })
        content.append({"type": "text", "text": JSON_OUTPUT_SUFFIX.strip()})
        return content

    @staticmethod
    def build_text_content(input_text: str, variant: PromptVariant) -> List[Dict[str, Any]]:
        return [{"type": "text", "text": variant.instruction + "\n\n[입력 텍스트]\n" + input_text}]

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        retry=retry_if_exception_type(Exception),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True
    )
    async def _invoke(self, content: List[Dict[str, Any]], variant: PromptVariant) -> Any:
        structured_llm = self.llm.with_structured_output(
            variant.schema, method="json_schema", include_raw=True
        )
        usage_callback = UsageMetadataCallbackHandler()
        result = await structured_llm.ainvoke(
            [HumanMessage(content=content)],
            config={"callbacks": [usage_callback]},
        )
        logger.info(f"[LLM] {variant.name} extraction done. Token Usage: {usage_callback.usage_metadata}")

        if result.get("parsed") is not None:
            return result["parsed"]
        raw = result.get("raw")
        return raw.content if raw is not None else None

    async def _run(self, content: List[Dict[str, Any]], variant: PromptVariant, timeout: float) -> Optional[Any]:
        if self.llm is None:
            logger.error("[LLM] GEMINI_API_KEY not configured")
            return None
        try:
            return await asyncio.wait_for(self._invoke(content, variant), timeout=timeout)
        except asyncio.TimeoutError:
            logger.error(f"[LLM] {variant.name} extraction timed out after {timeout:.0f}s")
        except Exception as e:
            logger.error(f"[LLM] {variant.name} extraction failed: {type(e).__name__}: {e}")
        return None

    async def extract_from_images(
        self,
        images: Sequence[str],
        mime_type: str = "image/jpeg",
    ) -> Optional[ApplicationTarget]:
        """
        Vision 모드 추출.

        Args:
            images: 하나의 문서를 순서대로 자른 base64 이미지 목록
            mime_type: 이미지 MIME 타입

        Returns:
            ApplicationTarget 또는 None (자격 증명 없음, 네트워크 오류, 시간 초과)
        """
        if not images:
            return None
        logger.info(f"[LLM] Sending {len(images)} images to vision model")
        content = self.build_image_content(images, mime_type, TARGET_VARIANT)
        payload = await self._run(content, TARGET_VARIANT, self.timeout)
        if payload is None:
            return None
        return parse_target_response(payload)

    async def extract_from_text(
        self,
        eligibility_text: Optional[str],
        description_text: Optional[str] = None,
    ) -> Optional[ApplicationTarget]:
        """텍스트 모드 추출. 지원분야가 비면 키워드로 추론한다."""
        if not eligibility_text and not description_text:
            return None

        input_text = "\n\n---\n\n".join(t for t in (eligibility_text, description_text) if t)
        content = self.build_text_content(input_text, TARGET_VARIANT)
        payload = await self._run(content, TARGET_VARIANT, self.text_timeout)
        if payload is None:
            return None

        data = _load_json_object(payload) or {}
        target = parse_target_response(data)
        # 모델이 명시한 '기타'는 그대로 두고, 빈 값일 때만 추론
        if not _as_text(data.get("supportField")):
            inferred = infer_support_field(description_text or eligibility_text or "")
            if inferred:
                target.support_field = inferred
        return target

    async def summarize_images(
        self,
        images: Sequence[str],
        mime_type: str = "image/jpeg",
    ) -> Optional[NarrativeSummary]:
        """사람이 읽는 서술형 요약 (매칭에는 쓰지 않음)."""
        if not images:
            return None
        content = self.build_image_content(images, mime_type, NARRATIVE_VARIANT)
        payload = await self._run(content, NARRATIVE_VARIANT, self.timeout)
        if payload is None:
            return None
        return parse_narrative_response(payload)

    async def summarize_text(
        self,
        eligibility_text: Optional[str],
        description_text: Optional[str] = None,
    ) -> Optional[NarrativeSummary]:
        if not eligibility_text and not description_text:
            return None
        input_text = "\n\n---\n\n".join(t for t in (eligibility_text, description_text) if t)
        content = self.build_text_content(input_text, NARRATIVE_VARIANT)
        payload = await self._run(content, NARRATIVE_VARIANT, self.text_timeout)
        if payload is None:
            return None
        return parse_narrative_response(payload)
