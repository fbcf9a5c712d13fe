"""Criação e entrega de notificações com novas tentativas e backoff exponencial."""

import time
from typing import Callable, List, Optional, Sequence

from ..comum.erros import ErroEnvio, ErroPublicacao, TransicaoInvalida
from ..comum.eventos import TOPIC_NOTIFICACOES_FALHAS, EventoPedido, agora
from ..comum.logs import configurar_logs
from ..comum.mensageria import PublicadorEventos
from .canais import Canal
from .mensagens import montar_mensagem
from .models import Notificacao, NovaNotificacao, StatusNotificacao
from .repositorio import RepositorioNotificacoes

logger = configurar_logs("notificacao.servico")


def calcular_atraso(tentativa: int, base: float, fator: float, maximo: float) -> float:
    """Espera antes da tentativa ``tentativa + 1``; ``tentativa`` começa em 1."""
    return min(base * (fator ** (tentativa - 1)), maximo)


class ServicoNotificacoes:
    def __init__(
        self,
        repositorio: RepositorioNotificacoes,
        canais: Sequence[Canal],
        max_tentativas: int = 3,
        backoff_base: float = 1.0,
        backoff_fator: float = 2.0,
        backoff_maximo: float = 30.0,
        publicador: Optional[PublicadorEventos] = None,
        ao_finalizar: Optional[Callable[[Notificacao], None]] = None,
        dormir: Callable[[float], None] = time.sleep,
    ):
        self.repositorio = repositorio
        self.canais = {canal.tipo: canal for canal in canais}
        self.max_tentativas = max_tentativas
        self.backoff_base = backoff_base
        self.backoff_fator = backoff_fator
        self.backoff_maximo = backoff_maximo
        self.publicador = publicador
        self.ao_finalizar = ao_finalizar
        self.dormir = dormir

    def processar_evento(
        self, evento: EventoPedido, dormir: Optional[Callable[[float], None]] = None
    ) -> List[Notificacao]:
        if not self.repositorio.registrar_evento(evento.evento_id):
            logger.info("Evento %s já processado; ignorando", evento.evento_id)
            return []

        pedido = evento.dados
        mensagem = montar_mensagem(evento.tipo, pedido)
        resultado = []
        for canal in self.canais.values():
            destinatario = canal.destinatario(pedido)
            if not destinatario:
                logger.debug("Pedido %s sem destinatário para o canal %s", pedido.id, canal.tipo.value)
                continue
            notificacao = self.repositorio.adicionar(NovaNotificacao(
                pedido_id=pedido.id,
                evento_id=evento.evento_id,
                canal=canal.tipo,
                destinatario=destinatario,
                mensagem=mensagem,
            ))
            resultado.append(self.entregar(notificacao, dormir))
        return resultado

    def entregar(
        self, notificacao: Notificacao, dormir: Optional[Callable[[float], None]] = None
    ) -> Notificacao:
        """Tenta entregar a notificação; ``dormir`` substitui a espera padrão entre tentativas."""
        dormir = dormir or self.dormir
        canal = self.canais.get(notificacao.canal)
        if canal is None:
            return self._finalizar_com_falha(notificacao, f"canal '{notificacao.canal.value}' desabilitado")

        for tentativa in range(1, self.max_tentativas + 1):
            notificacao = self._registrar_tentativa(notificacao)
            try:
                canal.enviar(notificacao)
            except ErroEnvio as e:
                logger.warning(
                    "Tentativa %s/%s da notificação %s falhou: %s",
                    tentativa, self.max_tentativas, notificacao.id, e,
                )
                notificacao = self._alterar(notificacao, ultimo_erro=str(e))
                if tentativa < self.max_tentativas:
                    dormir(calcular_atraso(tentativa, self.backoff_base, self.backoff_fator, self.backoff_maximo))
                continue

            notificacao = self._alterar(notificacao, status=StatusNotificacao.ENVIADA, ultimo_erro=None)
            logger.info("Notificação %s enviada por %s", notificacao.id, notificacao.canal.value)
            self._avisar(notificacao)
            return notificacao

        return self._finalizar_com_falha(notificacao, notificacao.ultimo_erro)

    def reenviar(self, notificacao_id: int) -> Notificacao:
        notificacao = self.repositorio.obter(notificacao_id)
        if notificacao.status == StatusNotificacao.ENVIADA:
            raise TransicaoInvalida(notificacao.status.value, StatusNotificacao.PENDENTE.value)
        notificacao = self._alterar(notificacao, status=StatusNotificacao.PENDENTE, tentativas=0, ultimo_erro=None)
        return self.entregar(notificacao)

    def _registrar_tentativa(self, notificacao: Notificacao) -> Notificacao:
        return self._alterar(notificacao, tentativas=notificacao.tentativas + 1)

    def _alterar(self, notificacao: Notificacao, **campos) -> Notificacao:
        campos["atualizado_em"] = agora()
        return self.repositorio.atualizar(notificacao.id, lambda n: n.model_copy(update=campos))

    def _finalizar_com_falha(self, notificacao: Notificacao, erro: Optional[str]) -> Notificacao:
        notificacao = self._alterar(notificacao, status=StatusNotificacao.FALHA, ultimo_erro=erro)
        logger.error(
            "Notificação %s falhou após %s tentativa(s): %s", notificacao.id, notificacao.tentativas, erro
        )
        if self.publicador is not None:
            try:
                self.publicador.publicar(TOPIC_NOTIFICACOES_FALHAS, notificacao.model_dump(mode="json"))
            except ErroPublicacao:
                logger.exception("Não foi possível publicar a falha da notificação %s", notificacao.id)
        self._avisar(notificacao)
        return notificacao

    def _avisar(self, notificacao: Notificacao):
        if self.ao_finalizar is not None:
            self.ao_finalizar(notificacao)
