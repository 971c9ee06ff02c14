
"""Bootstrap do container de DI (kink)."""
from kink import di
from .settings import Settings
from .logging import get_logger
from .db import create_session_factory
from .llm_client import LLMClient
from .prompting import PromptBuilder
from ..domain.services.cep_service import ViaCepClient

def bootstrap_di(settings: Settings | None = None) -> None:
    settings = settings or Settings()
    di[Settings] = settings
    di["logger"] = get_logger()
    factory = create_session_factory(settings.database_url)
    # kink trata callables como fábricas; o sessionmaker precisa ficar embrulhado
    di["session_factory"] = lambda _di: factory
    di[LLMClient] = LLMClient(settings)
    di[ViaCepClient] = ViaCepClient(settings)
    di[PromptBuilder] = PromptBuilder()
