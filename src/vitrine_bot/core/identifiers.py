
"""Normalização de identificadores do cliente (telefone, e-mail, CPF, CNPJ).

Chaves de deduplicação, em ordem de prioridade: phone → email → cpf → cnpj.
"""
from __future__ import annotations
from dataclasses import dataclass

IDENTIFIER_PRIORITY = ("phone", "email", "cpf", "cnpj")

def only_digits(value: str | None) -> str:
    return "".join(ch for ch in (value or "") if ch.isdigit())

def normalize_phone(phone: str | None) -> str:
    """Normaliza telefone brasileiro para DDD + número.

    "+55 11 98765-4321" -> "11987654321"; "021 11 98765-4321" -> "11987654321"
    """
    cleaned = only_digits(phone)
    if cleaned.startswith("55") and len(cleaned) > 11:
        cleaned = cleaned[2:]
    # prefixo de operadora (0XX) antes do DDD
    if len(cleaned) > 11 and cleaned.startswith("0") and cleaned[1:3].isdigit():
        cleaned = cleaned[3:]
    while cleaned.startswith("00") and len(cleaned) > 11:
        cleaned = cleaned[2:]
    while cleaned.startswith("0") and len(cleaned) > 11:
        cleaned = cleaned[1:]
    if len(cleaned) > 11:
        cleaned = cleaned[-11:]
    return cleaned

def normalize_email(email: str | None) -> str | None:
    value = (email or "").strip().lower()
    return value or None

def _same_digits(value: str) -> bool:
    return len(set(value)) == 1

def is_valid_cpf(cpf: str | None) -> bool:
    """Valida CPF pelos dígitos verificadores."""
    digits = only_digits(cpf)
    if len(digits) != 11 or _same_digits(digits):
        return False
    for size in (9, 10):
        total = sum(int(d) * w for d, w in zip(digits[:size], range(size + 1, 1, -1)))
        check = (total * 10) % 11
        if check == 10:
            check = 0
        if check != int(digits[size]):
            return False
    return True

def is_valid_cnpj(cnpj: str | None) -> bool:
    """Valida CNPJ pelos dígitos verificadores."""
    digits = only_digits(cnpj)
    if len(digits) != 14 or _same_digits(digits):
        return False
    weights = [5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2]
    for size in (12, 13):
        w = weights if size == 12 else [6] + weights
        total = sum(int(d) * k for d, k in zip(digits[:size], w))
        check = 0 if total % 11 < 2 else 11 - (total % 11)
        if check != int(digits[size]):
            return False
    return True

@dataclass(frozen=True)
class CustomerIdentifiers:
    phone: str | None = None
    email: str | None = None
    cpf: str | None = None
    cnpj: str | None = None

    def in_priority(self) -> list[tuple[str, str]]:
        """Pares (chave, valor) não nulos na ordem de prioridade."""
        return [(k, getattr(self, k)) for k in IDENTIFIER_PRIORITY if getattr(self, k)]

def normalize_identifiers(phone: str | None = None, email: str | None = None,
                          cpf: str | None = None, cnpj: str | None = None) -> CustomerIdentifiers:
    """Normaliza todos os identificadores; CPF/CNPJ inválidos são descartados."""
    return CustomerIdentifiers(
        phone=normalize_phone(phone) or None,
        email=normalize_email(email),
        cpf=only_digits(cpf) if is_valid_cpf(cpf) else None,
        cnpj=only_digits(cnpj) if is_valid_cnpj(cnpj) else None,
    )
