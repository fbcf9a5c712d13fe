"""Canais de entrega de notificações.

Cada canal sabe extrair o destinatário do pedido e entregar a mensagem.
Com uma URL de gateway configurada a entrega é um POST JSON para o gateway;
sem ela a entrega é simulada, com uma taxa de falha configurável.
"""

import random
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

import requests

from ..comum.config import Settings
from ..comum.erros import ErroEnvio
from ..comum.eventos import DadosPedido
from ..comum.logs import configurar_logs
from .models import CanalNotificacao, Notificacao

logger = configurar_logs("notificacao.canais")


class Canal(ABC):
    tipo: CanalNotificacao

    def __init__(
        self,
        gateway_url: str = "",
        taxa_falha: float = 0.0,
        aleatorio: Optional[random.Random] = None,
        timeout: float = 5.0,
    ):
        self.gateway_url = gateway_url
        self.taxa_falha = taxa_falha
        self.aleatorio = aleatorio or random.Random()
        self.timeout = timeout

    @abstractmethod
    def destinatario(self, pedido: DadosPedido) -> Optional[str]:
        ...

    def payload(self, notificacao: Notificacao) -> dict:
        return {
            "notificacao_id": notificacao.id,
            "pedido_id": notificacao.pedido_id,
            "destinatario": notificacao.destinatario,
            "mensagem": notificacao.mensagem,
        }

    def enviar(self, notificacao: Notificacao):
        if self.gateway_url:
            self._enviar_gateway(notificacao)
        else:
            self._simular(notificacao)

    def _enviar_gateway(self, notificacao: Notificacao):
        try:
            response = requests.post(self.gateway_url, json=self.payload(notificacao), timeout=self.timeout)
        except requests.RequestException as e:
            raise ErroEnvio(self.tipo.value, f"erro de conexão com o gateway: {e}") from e

        if not 200 <= response.status_code < 300:
            raise ErroEnvio(self.tipo.value, f"gateway respondeu {response.status_code}")

        logger.info("Notificação %s entregue ao gateway de %s", notificacao.id, self.tipo.value)

    def _simular(self, notificacao: Notificacao):
        if self.taxa_falha and self.aleatorio.random() < self.taxa_falha:
            raise ErroEnvio(self.tipo.value, "falha simulada")
        logger.info(
            "[%s] para %s: %s", self.tipo.value.upper(), notificacao.destinatario, notificacao.mensagem
        )


class CanalEmail(Canal):
    tipo = CanalNotificacao.EMAIL

    def destinatario(self, pedido: DadosPedido) -> Optional[str]:
        return pedido.cliente_email or None

    def payload(self, notificacao: Notificacao) -> dict:
        dados = super().payload(notificacao)
        dados["assunto"] = f"Atualização do pedido #{notificacao.pedido_id}"
        return dados


class CanalSms(Canal):
    tipo = CanalNotificacao.SMS

    def destinatario(self, pedido: DadosPedido) -> Optional[str]:
        return pedido.cliente_telefone or None


class CanalPush(Canal):
    tipo = CanalNotificacao.PUSH

    def destinatario(self, pedido: DadosPedido) -> Optional[str]:
        return pedido.cliente_id or None


CANAIS: Dict[str, type] = {
    CanalNotificacao.EMAIL.value: CanalEmail,
    CanalNotificacao.SMS.value: CanalSms,
    CanalNotificacao.PUSH.value: CanalPush,
}


def criar_canais(config: Settings, nomes: Optional[Iterable[str]] = None) -> List[Canal]:
    canais = []
    for nome in nomes if nomes is not None else config.NOTIFICACAO_CANAIS:
        classe = CANAIS[nome]
        canais.append(classe(gateway_url=config.gateway_url(nome), taxa_falha=config.NOTIFICACAO_TAXA_FALHA))
    return canais
