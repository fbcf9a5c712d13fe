from typing import Callable, List, Optional

from ..comum.armazenamento import ArquivoJson, indice_por_id, proximo_id
from ..comum.erros import NotificacaoNaoEncontrada
from ..comum.eventos import agora
from .models import Notificacao, NovaNotificacao, StatusNotificacao


class RepositorioNotificacoes:
    """Notificações e ids de eventos já processados, cada um no seu arquivo JSON."""

    def __init__(self, caminho: str, eventos_retidos: int = 10000):
        self.arquivo = ArquivoJson(caminho)
        self.processados = ArquivoJson(f"{caminho}.eventos")
        self.eventos_retidos = eventos_retidos

    def adicionar(self, dados: NovaNotificacao) -> Notificacao:
        def _adicionar(registros: List[dict]) -> Notificacao:
            momento = agora()
            notificacao = Notificacao(
                id=proximo_id(registros),
                criado_em=momento,
                atualizado_em=momento,
                **dados.model_dump(),
            )
            registros.append(notificacao.model_dump(mode="json"))
            return notificacao

        return self.arquivo.alterar(_adicionar)

    def listar(
        self,
        pedido_id: Optional[int] = None,
        status: Optional[StatusNotificacao] = None,
    ) -> List[Notificacao]:
        notificacoes = [Notificacao.model_validate(r) for r in self.arquivo.ler()]
        if pedido_id is not None:
            notificacoes = [n for n in notificacoes if n.pedido_id == pedido_id]
        if status is not None:
            notificacoes = [n for n in notificacoes if n.status == status]
        return notificacoes

    def obter(self, notificacao_id: int) -> Notificacao:
        registros = self.arquivo.ler()
        i = indice_por_id(registros, notificacao_id)
        if i < 0:
            raise NotificacaoNaoEncontrada(notificacao_id)
        return Notificacao.model_validate(registros[i])

    def atualizar(self, notificacao_id: int, funcao: Callable[[Notificacao], Notificacao]) -> Notificacao:
        def _atualizar(registros: List[dict]) -> Notificacao:
            i = indice_por_id(registros, notificacao_id)
            if i < 0:
                raise NotificacaoNaoEncontrada(notificacao_id)
            notificacao = funcao(Notificacao.model_validate(registros[i]))
            registros[i] = notificacao.model_dump(mode="json")
            return notificacao

        return self.arquivo.alterar(_atualizar)

    def registrar_evento(self, evento_id: str) -> bool:
        """Marca o evento como processado. Devolve False se ele já estava marcado.

        Só os ``eventos_retidos`` ids mais recentes são mantidos; uma reentrega
        mais antiga que isso volta a ser processada.
        """

        def _registrar(registros: List[dict]) -> bool:
            if any(r.get("id") == evento_id for r in registros):
                return False
            registros.append({"id": evento_id, "processado_em": agora().isoformat()})
            excedente = len(registros) - self.eventos_retidos
            if excedente > 0:
                del registros[:excedente]
            return True

        return self.processados.alterar(_registrar)
