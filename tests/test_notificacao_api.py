import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from backend.notificacao import notificacao as app_notificacao
from backend.notificacao.models import CanalNotificacao
from tests.apoio import FakeCanal, evento_pedido


@pytest.fixture
def canal_email():
    return FakeCanal(CanalNotificacao.EMAIL)


@pytest.fixture
def servico(fazer_servico, canal_email):
    return fazer_servico(canal_email, FakeCanal(CanalNotificacao.PUSH, campo="cliente_id"))


@pytest.fixture
def client(servico):
    app_notificacao.app.dependency_overrides[app_notificacao.get_servico] = lambda: servico
    yield TestClient(app_notificacao.app)
    app_notificacao.app.dependency_overrides.clear()


def test_root(client):
    assert client.get("/").status_code == 200


def test_listar_notificacoes(client, servico):
    servico.processar_evento(evento_pedido(id=1))
    servico.processar_evento(evento_pedido(id=2))

    todas = client.get("/notificacoes").json()
    assert len(todas) == 4

    do_pedido = client.get("/notificacoes", params={"pedido_id": 2}).json()
    assert {n["canal"] for n in do_pedido} == {"email", "push"}
    assert all(n["pedido_id"] == 2 for n in do_pedido)

    assert client.get("/notificacoes", params={"status": "falha"}).json() == []


def test_obter_notificacao(client, servico):
    servico.processar_evento(evento_pedido())

    r = client.get("/notificacoes/1")
    assert r.status_code == 200
    assert r.json()["status"] == "enviada"
    assert r.json()["tentativas"] == 1

    assert client.get("/notificacoes/99").status_code == 404


def test_reenviar(client, servico, canal_email):
    canal_email.falhas = 3
    servico.processar_evento(evento_pedido())
    assert client.get("/notificacoes/1").json()["status"] == "falha"

    r = client.post("/notificacoes/1/reenviar")
    assert r.status_code == 200
    assert r.json()["status"] == "enviada"
    assert r.json()["tentativas"] == 1


def test_reenviar_notificacao_enviada(client, servico):
    servico.processar_evento(evento_pedido())
    r = client.post("/notificacoes/1/reenviar")
    assert r.status_code == 409


def test_reenviar_notificacao_inexistente(client):
    assert client.post("/notificacoes/5/reenviar").status_code == 404


class RequisicaoFalsa:
    """Cliente SSE que se desconecta depois de ``checagens`` verificações."""

    def __init__(self, checagens):
        self.checagens = checagens

    async def is_disconnected(self):
        self.checagens -= 1
        return self.checagens < 0


def ler_evento_sse(parte):
    assert parte.startswith("data: ")
    assert parte.endswith("\n\n")
    return json.loads(parte[len("data: "):-2])


async def colher(fila, quantidade):
    gerador = app_notificacao.sse_notificacoes(fila)
    partes = [await gerador.__anext__() for _ in range(quantidade)]
    await gerador.aclose()
    return partes


def test_cada_cliente_sse_recebe_todas_as_notificacoes(servico):
    fila_1 = app_notificacao.assinar_feed()
    fila_2 = app_notificacao.assinar_feed()
    notificacoes = servico.processar_evento(evento_pedido())
    for notificacao in notificacoes:
        app_notificacao.publicar_no_feed(notificacao)

    for fila in (fila_1, fila_2):
        partes = asyncio.run(colher(fila, 2))
        assert [ler_evento_sse(p)["id"] for p in partes] == [n.id for n in notificacoes]

    assert fila_1 not in app_notificacao._assinantes
    assert fila_2 not in app_notificacao._assinantes


def test_stream_sse_envia_evento_e_encerra_na_desconexao(servico):
    [notificacao, _] = servico.processar_evento(evento_pedido())

    async def cenario():
        resposta = await app_notificacao.notificacoes_sse(RequisicaoFalsa(checagens=1))
        app_notificacao.publicar_no_feed(notificacao)
        return resposta, [parte async for parte in resposta.body_iterator]

    resposta, partes = asyncio.run(cenario())

    assert resposta.media_type == "text/event-stream"
    assert len(partes) == 1
    assert "Olá Ana" in partes[0]
    evento = ler_evento_sse(partes[0])
    assert evento["id"] == notificacao.id
    assert evento["status"] == "enviada"
    assert app_notificacao._assinantes == set()


def test_fila_sse_cheia_descarta_so_para_aquele_cliente(monkeypatch, servico):
    monkeypatch.setattr(app_notificacao, "TAMANHO_FILA_SSE", 1)
    fila = app_notificacao.assinar_feed()
    [primeira, segunda] = servico.processar_evento(evento_pedido())

    app_notificacao.publicar_no_feed(primeira)
    app_notificacao.publicar_no_feed(segunda)

    assert fila.get_nowait().id == primeira.id
    assert fila.empty()
    app_notificacao.cancelar_assinatura(fila)
