"""Produtor e consumidor de eventos sobre RabbitMQ (pika).

Cada publicação abre uma conexão curta com o broker, como nos serviços de
pedido originais. O consumidor roda numa thread própria e mantém a sua
conexão, já que a ``BlockingConnection`` do pika não pode ser compartilhada
entre threads.
"""

import json
import threading
from typing import Any, Callable, Dict, Iterable, Optional

import pika  # type: ignore
from pika.exceptions import AMQPConnectionError, AMQPError  # type: ignore

from .config import Settings, settings
from .erros import ErroPublicacao
from .eventos import Evento, montar_evento
from .logs import configurar_logs

logger = configurar_logs("comum.mensageria")

EXCHANGE_TYPE = 'topic'
DELIVERY_PERSISTENTE = 2


def parametros_conexao(config: Settings = settings) -> pika.ConnectionParameters:
    credenciais = pika.PlainCredentials(config.RABBITMQ_USER, config.RABBITMQ_PASSWORD)
    return pika.ConnectionParameters(
        host=config.RABBITMQ_HOST,
        port=config.RABBITMQ_PORT,
        credentials=credenciais,
        heartbeat=60,
    )


class PublicadorEventos:
    def __init__(
        self,
        parametros: Optional[pika.ConnectionParameters] = None,
        exchange: Optional[str] = None,
        conectar: Callable[..., Any] = pika.BlockingConnection,
    ):
        self.parametros = parametros or parametros_conexao()
        self.exchange = exchange or settings.RABBITMQ_EXCHANGE
        self._conectar = conectar

    def publicar(self, tipo: str, dados: Dict[str, Any]) -> Evento:
        evento = montar_evento(tipo, dados)
        corpo = evento.model_dump_json()
        try:
            connection = self._conectar(self.parametros)
            try:
                channel = connection.channel()
                channel.exchange_declare(exchange=self.exchange, exchange_type=EXCHANGE_TYPE, durable=True)
                channel.basic_publish(
                    exchange=self.exchange,
                    routing_key=tipo,
                    body=corpo,
                    properties=pika.BasicProperties(
                        content_type='application/json',
                        delivery_mode=DELIVERY_PERSISTENTE,
                        message_id=evento.evento_id,
                    ),
                )
            finally:
                connection.close()
        except AMQPError as e:
            raise ErroPublicacao(f"Erro ao publicar evento '{tipo}': {e!r}") from e

        logger.info("Evento %s publicado na exchange '%s' com chave %s", evento.evento_id, self.exchange, tipo)
        return evento


class ConsumidorEventos:
    """Consome uma fila durável ligada a um conjunto de chaves de roteamento."""

    def __init__(
        self,
        fila: str,
        chaves: Iterable[str],
        callback: Callable[..., None],
        parametros: Optional[pika.ConnectionParameters] = None,
        exchange: Optional[str] = None,
        conectar: Callable[..., Any] = pika.BlockingConnection,
        atraso_reconexao: float = 1.0,
        atraso_maximo: float = 30.0,
    ):
        self.fila = fila
        self.chaves = list(chaves)
        self.callback = callback
        self.parametros = parametros or parametros_conexao()
        self.exchange = exchange or settings.RABBITMQ_EXCHANGE
        self._conectar = conectar
        self.atraso_reconexao = atraso_reconexao
        self.atraso_maximo = atraso_maximo
        self._parar = threading.Event()
        self._connection = None
        self._channel = None

    def consumir(self):
        connection = self._conectar(self.parametros)
        channel = connection.channel()
        channel.exchange_declare(exchange=self.exchange, exchange_type=EXCHANGE_TYPE, durable=True)
        channel.queue_declare(queue=self.fila, durable=True)
        for chave in self.chaves:
            channel.queue_bind(exchange=self.exchange, queue=self.fila, routing_key=chave)
            logger.info("Fila '%s' ligada à chave %s", self.fila, chave)
        channel.basic_qos(prefetch_count=1)
        channel.basic_consume(queue=self.fila, on_message_callback=self.callback)

        self._connection = connection
        self._channel = channel
        logger.info("Aguardando mensagens na fila '%s'", self.fila)
        try:
            channel.start_consuming()
        finally:
            self._connection = None
            self._channel = None
            if connection.is_open:
                connection.close()

    def executar_para_sempre(self):
        atraso = self.atraso_reconexao
        while not self._parar.is_set():
            try:
                self.consumir()
                atraso = self.atraso_reconexao
            except AMQPConnectionError as e:
                logger.warning("Broker indisponível (%r); nova tentativa em %.1fs", e, atraso)
                self._parar.wait(atraso)
                atraso = min(atraso * 2, self.atraso_maximo)
            except AMQPError:
                logger.exception("Erro no consumidor da fila '%s'", self.fila)
                self._parar.wait(atraso)

    def parar(self):
        self._parar.set()
        connection, channel = self._connection, self._channel
        if connection is not None and channel is not None:
            connection.add_callback_threadsafe(channel.stop_consuming)

    def iniciar_em_thread(self) -> threading.Thread:
        thread = threading.Thread(target=self.executar_para_sempre, name=f"consumidor-{self.fila}", daemon=True)
        thread.start()
        return thread


def decodificar(body: bytes) -> Dict[str, Any]:
    conteudo = json.loads(body)
    if not isinstance(conteudo, dict):
        raise ValueError("a mensagem deve ser um objeto JSON")
    return conteudo
