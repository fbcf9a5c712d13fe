"""Serviço consumidor que envia notificações sobre pedidos."""
