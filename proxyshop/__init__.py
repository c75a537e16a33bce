"""
Loja de pacotes de assinatura para o painel de proxy.
Pacotes, pedidos com comprovante, aprovação e provisionamento de contas.
"""

__version__ = "0.1.0"
