from decimal import Decimal

from ..comum.eventos import (
    TOPIC_PEDIDOS_CRIADOS,
    TOPIC_PEDIDOS_EXCLUIDOS,
    TOPIC_PEDIDOS_STATUS_ATUALIZADO,
    DadosPedido,
)

FRASES_STATUS = {
    "pendente": "está aguardando confirmação",
    "confirmado": "foi confirmado",
    "enviado": "saiu para entrega",
    "entregue": "foi entregue",
    "cancelado": "foi cancelado",
}


def formatar_valor(valor: Decimal) -> str:
    return f"R$ {valor:.2f}".replace(".", ",")


def montar_mensagem(tipo: str, pedido: DadosPedido) -> str:
    nome = pedido.cliente_nome
    if tipo == TOPIC_PEDIDOS_CRIADOS:
        return f"Olá {nome}, recebemos o seu pedido #{pedido.id} no valor de {formatar_valor(pedido.valor)}."
    if tipo == TOPIC_PEDIDOS_STATUS_ATUALIZADO:
        frase = FRASES_STATUS.get(pedido.status, f"mudou para '{pedido.status}'")
        return f"Olá {nome}, o seu pedido #{pedido.id} {frase}."
    if tipo == TOPIC_PEDIDOS_EXCLUIDOS:
        return f"Olá {nome}, o seu pedido #{pedido.id} foi removido."
    return f"Olá {nome}, há uma atualização no seu pedido #{pedido.id}."
