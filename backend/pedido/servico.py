from typing import List, Optional, Tuple

from ..comum.erros import TransicaoInvalida
from ..comum.eventos import (
    TOPIC_PEDIDOS_CRIADOS,
    TOPIC_PEDIDOS_EXCLUIDOS,
    TOPIC_PEDIDOS_STATUS_ATUALIZADO,
    agora,
)
from ..comum.logs import configurar_logs
from .models import Pedido, PedidoCriacao, StatusPedido, transicao_permitida
from .repositorio import RepositorioPedidos

logger = configurar_logs("pedido.servico")


class ServicoPedidos:
    """Regras de negócio dos pedidos.

    As operações que alteram estado devolvem o pedido junto com a chave do
    evento que deve ser publicado; a publicação fica a cargo da API.
    """

    def __init__(self, repositorio: RepositorioPedidos):
        self.repositorio = repositorio

    def criar(self, dados: PedidoCriacao) -> Tuple[Pedido, str]:
        pedido = self.repositorio.adicionar(dados)
        logger.info("Pedido %s criado para o cliente %s", pedido.id, pedido.cliente_id)
        return pedido, TOPIC_PEDIDOS_CRIADOS

    def listar(self, status: Optional[StatusPedido] = None) -> List[Pedido]:
        return self.repositorio.listar(status)

    def obter(self, pedido_id: int) -> Pedido:
        return self.repositorio.obter(pedido_id)

    def atualizar_status(self, pedido_id: int, novo: StatusPedido) -> Tuple[Pedido, str]:
        def _transicionar(pedido: Pedido) -> Pedido:
            if not transicao_permitida(pedido.status, novo):
                raise TransicaoInvalida(pedido.status.value, novo.value)
            return pedido.model_copy(update={"status": novo, "atualizado_em": agora()})

        pedido = self.repositorio.atualizar(pedido_id, _transicionar)
        logger.info("Pedido %s atualizado para status '%s'", pedido.id, pedido.status.value)
        return pedido, TOPIC_PEDIDOS_STATUS_ATUALIZADO

    def excluir(self, pedido_id: int) -> Tuple[Pedido, str]:
        pedido = self.repositorio.remover(pedido_id)
        logger.info("Pedido %s excluído", pedido_id)
        return pedido, TOPIC_PEDIDOS_EXCLUIDOS
