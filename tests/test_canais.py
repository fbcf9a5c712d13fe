import random
from datetime import datetime, timezone

import pytest
import requests

from backend.comum.config import Settings
from backend.comum.erros import ErroEnvio
from backend.notificacao import canais
from backend.notificacao.canais import CanalEmail, CanalPush, CanalSms, criar_canais
from backend.notificacao.models import CanalNotificacao, Notificacao


def notificacao(canal=CanalNotificacao.EMAIL, destinatario="ana@example.com"):
    momento = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return Notificacao(
        id=7,
        pedido_id=3,
        evento_id="abc",
        canal=canal,
        destinatario=destinatario,
        mensagem="Olá Ana",
        criado_em=momento,
        atualizado_em=momento,
    )


class RespostaFalsa:
    def __init__(self, status_code):
        self.status_code = status_code


def test_destinatarios(pedido_exemplo):
    assert CanalEmail().destinatario(pedido_exemplo) == "ana@example.com"
    assert CanalSms().destinatario(pedido_exemplo) == "+5511999990000"
    assert CanalPush().destinatario(pedido_exemplo) == "cli-1"
    assert CanalSms().destinatario(pedido_exemplo.model_copy(update={"cliente_telefone": None})) is None


def test_envio_simulado():
    CanalEmail().enviar(notificacao())


def test_envio_simulado_com_falha():
    canal = CanalSms(taxa_falha=1.0, aleatorio=random.Random(1))
    with pytest.raises(ErroEnvio) as exc:
        canal.enviar(notificacao(CanalNotificacao.SMS, "+5511999990000"))
    assert exc.value.canal == "sms"


def test_gateway_recebe_payload(monkeypatch):
    chamadas = []

    def post(url, json, timeout):
        chamadas.append((url, json))
        return RespostaFalsa(202)

    monkeypatch.setattr(canais.requests, "post", post)
    CanalEmail(gateway_url="http://gateway/email").enviar(notificacao())

    [(url, corpo)] = chamadas
    assert url == "http://gateway/email"
    assert corpo["destinatario"] == "ana@example.com"
    assert corpo["notificacao_id"] == 7
    assert corpo["assunto"] == "Atualização do pedido #3"


def test_gateway_com_erro_http(monkeypatch):
    monkeypatch.setattr(canais.requests, "post", lambda url, json, timeout: RespostaFalsa(503))
    with pytest.raises(ErroEnvio, match="503"):
        CanalPush(gateway_url="http://gateway/push").enviar(notificacao(CanalNotificacao.PUSH, "cli-1"))


def test_gateway_fora_do_ar(monkeypatch):
    def post(url, json, timeout):
        raise requests.ConnectionError("recusado")

    monkeypatch.setattr(canais.requests, "post", post)
    with pytest.raises(ErroEnvio, match="conexão"):
        CanalEmail(gateway_url="http://gateway/email").enviar(notificacao())


def test_criar_canais(monkeypatch):
    monkeypatch.setenv("NOTIFICACAO_CANAIS", "sms,email")
    monkeypatch.setenv("SMS_GATEWAY_URL", "http://gateway/sms")
    monkeypatch.setenv("NOTIFICACAO_TAXA_FALHA", "0.25")

    sms, email = criar_canais(Settings())

    assert isinstance(sms, CanalSms) and isinstance(email, CanalEmail)
    assert sms.gateway_url == "http://gateway/sms"
    assert email.gateway_url == ""
    assert email.taxa_falha == 0.25
