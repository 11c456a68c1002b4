from __future__ import annotations
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv()

class Settings(BaseSettings):
  # API Keys
  gemini_api_key: Optional[str] = None

  # DB
  pg_conn: str = "postgresql+psycopg://localhost:5432/support_programs"

  # Vision LLM
  vision_model: str = "gemini-2.0-flash"
  vision_temperature: float = 0.1
  extraction_timeout: float = 90.0       # seconds, 이미지 모드
  text_extraction_timeout: float = 60.0  # seconds, 텍스트 모드
  enable_narrative: bool = False         # 사람용 요약(aiSummary 등) 추가 추출

  # Browser
  browser_headless: bool = True
  navigation_timeout: float = 60.0
  max_concurrent_pages: int = 3
  announcement_timeout: float = 240.0    # 공고 1건 전체 처리 한도

  # Crawl 기본값
  crawl_limit: int = 5

  class Config:
    env_file = ".env"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """애플리케이션 전역 설정 (싱글톤 캐시)."""
  return Settings()
