"""Código compartilhado entre os serviços de pedido e notificação."""
