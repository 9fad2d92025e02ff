from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # History persistence: "database", "redis" or "memory"
    history_backend: str = "database"
    history_key: str = "searchHistory"
    history_capacity: int = 7

    # Database
    database_url: str = "sqlite+aiosqlite:///./tripquote.db"

    # Redis
    redis_url: str = "redis://localhost:6379/0"

    # OpenAI
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"

    # Anthropic
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-5-20250929"

    # Trip generation
    currency: str = "BRL"
    home_airport: str = "São Paulo (GRU)"
    route_stops: str = "Portugal (LIS),Paris (CDG),Londres (LHR)"
    summary_language: str = "Brazilian Portuguese"
    default_adults: int = 2
    default_children: int = 1

    # Sharing
    agency_name: str = "Ernest's European Getaways"
    agent_name: str = "Ernest"
    email_recipient: str = "traveler@example.com"
    email_subject: str = "Your European Trip Quote"
    whatsapp_phone: str = "5511999999999"

    # Messages
    error_default: str = "Failed to fetch travel options. Please try again later."
    email_summary_fallback: str = "Could not generate the email summary right now."
    whatsapp_summary_fallback: str = "Could not generate the WhatsApp summary."

    # CORS
    cors_origins: str = "http://localhost:5173"

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def route_stop_list(self) -> list[str]:
        return [stop.strip() for stop in self.route_stops.split(",") if stop.strip()]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
