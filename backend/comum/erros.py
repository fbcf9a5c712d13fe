"""Erros de domínio compartilhados pelos serviços."""


class ErroPipeline(Exception):
    pass


class RecursoNaoEncontrado(ErroPipeline):
    pass


class PedidoNaoEncontrado(RecursoNaoEncontrado):
    def __init__(self, pedido_id: int):
        super().__init__(f"Pedido {pedido_id} não encontrado")
        self.pedido_id = pedido_id


class NotificacaoNaoEncontrada(RecursoNaoEncontrado):
    def __init__(self, notificacao_id: int):
        super().__init__(f"Notificação {notificacao_id} não encontrada")
        self.notificacao_id = notificacao_id


class TransicaoInvalida(ErroPipeline):
    def __init__(self, atual: str, novo: str):
        super().__init__(f"Transição de status inválida: '{atual}' -> '{novo}'")
        self.atual = atual
        self.novo = novo


class ErroPublicacao(ErroPipeline):
    pass


class EventoInvalido(ErroPipeline):
    pass


class ErroEnvio(ErroPipeline):
    def __init__(self, canal: str, motivo: str):
        super().__init__(f"Falha ao enviar pelo canal '{canal}': {motivo}")
        self.canal = canal
        self.motivo = motivo
