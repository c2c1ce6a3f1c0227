from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    openrouter_api_key: str
    llm_model: str = "openai/gpt-4o-mini"
    llm_base_url: str = "https://openrouter.ai/api/v1"
    llm_temperature: float = 0.2
    llm_max_tokens: int = 4000
    llm_timeout_seconds: float = 120
    site_url: str = "http://localhost:8000"
    app_name: str = "Notes Quiz Generator"

    max_prompt_chars: int = 50_000
    raw_excerpt_chars: int = 600

    pdf_enabled: bool = True
    pdf_max_pages: int = 50
    ocr_timeout_seconds: float = 45
    ocr_language: str = "eng"

    class Config:
        env_file = ".env"

settings = Settings()
