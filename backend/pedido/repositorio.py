from typing import Callable, List, Optional

from ..comum.armazenamento import ArquivoJson, indice_por_id, proximo_id
from ..comum.erros import PedidoNaoEncontrado
from ..comum.eventos import agora
from .models import Pedido, PedidoCriacao, StatusPedido


class RepositorioPedidos:
    def __init__(self, caminho: str):
        self.arquivo = ArquivoJson(caminho)

    def adicionar(self, dados: PedidoCriacao) -> Pedido:
        def _adicionar(registros: List[dict]) -> Pedido:
            momento = agora()
            pedido = Pedido(
                id=proximo_id(registros),
                status=StatusPedido.PENDENTE,
                criado_em=momento,
                atualizado_em=momento,
                **dados.model_dump(),
            )
            registros.append(pedido.model_dump(mode="json"))
            return pedido

        return self.arquivo.alterar(_adicionar)

    def listar(self, status: Optional[StatusPedido] = None) -> List[Pedido]:
        pedidos = [Pedido.model_validate(r) for r in self.arquivo.ler()]
        if status is not None:
            pedidos = [p for p in pedidos if p.status == status]
        return pedidos

    def obter(self, pedido_id: int) -> Pedido:
        registros = self.arquivo.ler()
        i = indice_por_id(registros, pedido_id)
        if i < 0:
            raise PedidoNaoEncontrado(pedido_id)
        return Pedido.model_validate(registros[i])

    def atualizar(self, pedido_id: int, funcao: Callable[[Pedido], Pedido]) -> Pedido:
        """Aplica ``funcao`` ao pedido e grava o resultado sob o mesmo lock."""

        def _atualizar(registros: List[dict]) -> Pedido:
            i = indice_por_id(registros, pedido_id)
            if i < 0:
                raise PedidoNaoEncontrado(pedido_id)
            pedido = funcao(Pedido.model_validate(registros[i]))
            registros[i] = pedido.model_dump(mode="json")
            return pedido

        return self.arquivo.alterar(_atualizar)

    def remover(self, pedido_id: int) -> Pedido:
        def _remover(registros: List[dict]) -> Pedido:
            i = indice_por_id(registros, pedido_id)
            if i < 0:
                raise PedidoNaoEncontrado(pedido_id)
            return Pedido.model_validate(registros.pop(i))

        return self.arquivo.alterar(_remover)
