from typing import Callable

from ..comum.eventos import EventoPedido
from ..comum.logs import configurar_logs
from ..comum.mensageria import decodificar
from .servico import ServicoNotificacoes

logger = configurar_logs("notificacao.consumidor")

FILA_NOTIFICACOES = 'notificacao.pedidos'


def criar_callback(servico: ServicoNotificacoes) -> Callable:
    """Monta o ``on_message_callback`` do pika para a fila de notificações.

    A espera entre tentativas usa ``connection.sleep`` do pika, que continua
    atendendo heartbeats enquanto aguarda.
    """

    def callback(ch, method, properties, body):
        try:
            evento = EventoPedido.model_validate(decodificar(body))
        except ValueError as e:  # JSON malformado ou fora do esquema (ValidationError)
            logger.error("Mensagem inválida na chave '%s' descartada: %s", method.routing_key, e)
            ch.basic_nack(delivery_tag=method.delivery_tag, requeue=False)
            return

        logger.info("Evento %s recebido na chave '%s' (pedido %s)", evento.evento_id, method.routing_key, evento.dados.id)
        try:
            servico.processar_evento(evento, dormir=ch.connection.sleep)
        except Exception:
            logger.exception("Erro ao processar o evento %s", evento.evento_id)
            ch.basic_nack(delivery_tag=method.delivery_tag, requeue=False)
            return

        ch.basic_ack(delivery_tag=method.delivery_tag)

    return callback
