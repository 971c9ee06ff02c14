
"""Consulta de CEP (ViaCEP) com timeout explícito.

- normalize_cep(): somente dígitos; None se não tiver exatamente 8.
- ViaCepClient.lookup(): Address, ou None quando o CEP não existe.
  Falhas de rede/timeout sobem como CepLookupUnavailable.
"""
from __future__ import annotations
import httpx
from kink import di
from ...core.settings import Settings
from ...core.identifiers import only_digits
from ...core.logging import get_logger
from ...ports.interfaces import Address

log = get_logger()

class CepLookupUnavailable(RuntimeError):
    """Serviço de CEP indisponível (timeout, rede ou resposta inválida)."""

def normalize_cep(cep: str | None) -> str | None:
    digits = only_digits(cep)
    return digits if len(digits) == 8 else None

class ViaCepClient:
    def __init__(self, settings: Settings | None = None, transport: httpx.BaseTransport | None = None):
        self.s = settings or di[Settings]
        self.transport = transport

    def lookup(self, cep: str) -> Address | None:
        """Consulta um CEP já normalizado (8 dígitos)."""
        url = f"{self.s.cep_base_url.rstrip('/')}/ws/{cep}/json/"
        try:
            with httpx.Client(timeout=self.s.cep_timeout_s, transport=self.transport) as cli:
                r = cli.get(url)
                if r.status_code == 404:
                    return None
                r.raise_for_status()
                data = r.json()
        except (httpx.HTTPError, ValueError) as exc:
            log.warning("cep_lookup_failed", cep=cep, error=str(exc))
            raise CepLookupUnavailable(str(exc)) from exc
        if not isinstance(data, dict) or data.get("erro"):
            return None
        return Address(
            cep=only_digits(data.get("cep")) or cep,
            street=data.get("logradouro") or "",
            complement=data.get("complemento") or "",
            neighborhood=data.get("bairro") or "",
            city=data.get("localidade") or "",
            state=data.get("uf") or "",
        )
