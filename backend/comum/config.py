"""Configuração dos serviços lida de variáveis de ambiente."""

import os
from typing import List

CANAIS_SUPORTADOS = ("email", "sms", "push")


def _bool(valor: str) -> bool:
    return valor.strip().lower() in ("1", "true", "sim", "yes")


def _int(nome: str, padrao: str) -> int:
    valor = os.getenv(nome, padrao)
    try:
        return int(valor)
    except ValueError:
        raise RuntimeError(f"{nome} inválido: {valor!r}") from None


def _float(nome: str, padrao: str) -> float:
    valor = os.getenv(nome, padrao)
    try:
        return float(valor)
    except ValueError:
        raise RuntimeError(f"{nome} inválido: {valor!r}") from None


class Settings:
    RABBITMQ_HOST: str
    RABBITMQ_PORT: int
    RABBITMQ_USER: str
    RABBITMQ_PASSWORD: str
    RABBITMQ_EXCHANGE: str
    MENSAGERIA_HABILITADA: bool
    PEDIDOS_ARQUIVO: str
    NOTIFICACOES_ARQUIVO: str
    NOTIFICACAO_SERVICE_URL: str
    NOTIFICACAO_CANAIS: List[str]
    NOTIFICACAO_MAX_TENTATIVAS: int
    NOTIFICACAO_BACKOFF_BASE: float
    NOTIFICACAO_BACKOFF_FATOR: float
    NOTIFICACAO_BACKOFF_MAXIMO: float
    NOTIFICACAO_TAXA_FALHA: float
    NOTIFICACAO_EVENTOS_RETIDOS: int
    EMAIL_GATEWAY_URL: str
    SMS_GATEWAY_URL: str
    PUSH_GATEWAY_URL: str
    LOG_LEVEL: str

    def __init__(self):
        self.RABBITMQ_HOST = os.getenv("RABBITMQ_HOST", "rabbitmq")
        self.RABBITMQ_PORT = _int("RABBITMQ_PORT", "5672")
        self.RABBITMQ_USER = os.getenv("RABBITMQ_USER", "admin")
        self.RABBITMQ_PASSWORD = os.getenv("RABBITMQ_PASSWORD", "admin")
        self.RABBITMQ_EXCHANGE = os.getenv("RABBITMQ_EXCHANGE", "pedidos")
        self.MENSAGERIA_HABILITADA = _bool(os.getenv("MENSAGERIA_HABILITADA", "true"))

        self.PEDIDOS_ARQUIVO = os.getenv("PEDIDOS_ARQUIVO", "pedidos.json")
        self.NOTIFICACOES_ARQUIVO = os.getenv("NOTIFICACOES_ARQUIVO", "notificacoes.json")
        self.NOTIFICACAO_SERVICE_URL = os.getenv("NOTIFICACAO_SERVICE_URL", "http://notificacao:8000")

        canais = os.getenv("NOTIFICACAO_CANAIS", ",".join(CANAIS_SUPORTADOS))
        self.NOTIFICACAO_CANAIS = [c.strip().lower() for c in canais.split(",") if c.strip()]
        self.NOTIFICACAO_MAX_TENTATIVAS = _int("NOTIFICACAO_MAX_TENTATIVAS", "3")
        self.NOTIFICACAO_BACKOFF_BASE = _float("NOTIFICACAO_BACKOFF_BASE", "1.0")
        self.NOTIFICACAO_BACKOFF_FATOR = _float("NOTIFICACAO_BACKOFF_FATOR", "2.0")
        self.NOTIFICACAO_BACKOFF_MAXIMO = _float("NOTIFICACAO_BACKOFF_MAXIMO", "30.0")
        self.NOTIFICACAO_TAXA_FALHA = _float("NOTIFICACAO_TAXA_FALHA", "0.0")
        self.NOTIFICACAO_EVENTOS_RETIDOS = _int("NOTIFICACAO_EVENTOS_RETIDOS", "10000")

        self.EMAIL_GATEWAY_URL = os.getenv("EMAIL_GATEWAY_URL", "")
        self.SMS_GATEWAY_URL = os.getenv("SMS_GATEWAY_URL", "")
        self.PUSH_GATEWAY_URL = os.getenv("PUSH_GATEWAY_URL", "")

        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self._validate()

    def _validate(self):
        if self.NOTIFICACAO_MAX_TENTATIVAS < 1:
            raise RuntimeError("NOTIFICACAO_MAX_TENTATIVAS deve ser pelo menos 1")
        if self.NOTIFICACAO_EVENTOS_RETIDOS < 1:
            raise RuntimeError("NOTIFICACAO_EVENTOS_RETIDOS deve ser pelo menos 1")
        if not 0.0 <= self.NOTIFICACAO_TAXA_FALHA <= 1.0:
            raise RuntimeError("NOTIFICACAO_TAXA_FALHA deve estar entre 0 e 1")
        if min(self.NOTIFICACAO_BACKOFF_BASE, self.NOTIFICACAO_BACKOFF_FATOR, self.NOTIFICACAO_BACKOFF_MAXIMO) < 0:
            raise RuntimeError("Parâmetros de backoff não podem ser negativos")
        desconhecidos = [c for c in self.NOTIFICACAO_CANAIS if c not in CANAIS_SUPORTADOS]
        if desconhecidos:
            raise RuntimeError(f"Canais de notificação desconhecidos: {', '.join(desconhecidos)}")

    def gateway_url(self, canal: str) -> str:
        return {
            "email": self.EMAIL_GATEWAY_URL,
            "sms": self.SMS_GATEWAY_URL,
            "push": self.PUSH_GATEWAY_URL,
        }.get(canal, "")


settings = Settings()
