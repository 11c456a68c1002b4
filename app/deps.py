# app/deps.py
"""
공용 의존성 모듈.
- SQLAlchemy Engine
- Gemini Vision Chat LLM
모두 lazy singleton으로 초기화됩니다.
"""
from __future__ import annotations
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from langchain_google_genai import ChatGoogleGenerativeAI

from app.settings import get_settings


# ---------- Database ----------
_engine: Optional[Engine] = None

def get_engine() -> Engine:
  """SQLAlchemy Engine (lazy singleton)."""
  global _engine
  if _engine is None:
    cfg = get_settings()
    _engine = create_engine(cfg.pg_conn, pool_pre_ping=True)
  return _engine


# ---------- LLMs ----------
_vision_llm: Optional[ChatGoogleGenerativeAI] = None

def get_vision_llm() -> Optional[ChatGoogleGenerativeAI]:
  """
  공고문 이미지/텍스트 구조화 추출용 Gemini LLM.
  API 키가 없으면 None (추출 단계에서 건너뜀).
  """
  global _vision_llm
  if _vision_llm is None:
    cfg = get_settings()
    if not cfg.gemini_api_key:
      return None
    _vision_llm = ChatGoogleGenerativeAI(
        model=cfg.vision_model,
        temperature=cfg.vision_temperature,
        google_api_key=cfg.gemini_api_key,
    )
  return _vision_llm
