import os
from decimal import Decimal

import pytest

# Os apps leem a configuração na importação
os.environ.setdefault("MENSAGERIA_HABILITADA", "false")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from backend.comum.eventos import DadosPedido  # noqa: E402
from backend.notificacao.repositorio import RepositorioNotificacoes  # noqa: E402
from backend.notificacao.servico import ServicoNotificacoes  # noqa: E402
from backend.pedido.repositorio import RepositorioPedidos  # noqa: E402
from tests.apoio import FakePublicador, dados_pedido  # noqa: E402


@pytest.fixture
def publicador():
    return FakePublicador()


@pytest.fixture
def repositorio_pedidos(tmp_path):
    return RepositorioPedidos(str(tmp_path / "pedidos.json"))


@pytest.fixture
def repositorio_notificacoes(tmp_path):
    return RepositorioNotificacoes(str(tmp_path / "notificacoes.json"))


@pytest.fixture
def esperas():
    return []


@pytest.fixture
def finalizadas():
    return []


@pytest.fixture
def fazer_servico(repositorio_notificacoes, publicador, esperas, finalizadas):
    def _fazer(*canais, max_tentativas=3):
        return ServicoNotificacoes(
            repositorio_notificacoes,
            canais,
            max_tentativas=max_tentativas,
            backoff_base=1.0,
            backoff_fator=2.0,
            backoff_maximo=30.0,
            publicador=publicador,
            ao_finalizar=finalizadas.append,
            dormir=esperas.append,
        )

    return _fazer


@pytest.fixture
def pedido_exemplo():
    return DadosPedido(**dict(dados_pedido(), valor=Decimal("99.90")))
