"""
Armazenamento dos comprovantes de pagamento enviados pelos clientes.
"""

import logging
import os
import time

from werkzeug.utils import secure_filename

from proxyshop.exceptions import ReceiptNotFound, ShopError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".pdf"}


class ReceiptStorage:

    def __init__(self, root: str):
        self.root = os.path.realpath(root)

    def save(self, order_id: int, file_storage) -> str:
        """
        Salva o arquivo enviado e retorna o caminho gravado.

        Raises:
            ShopError: arquivo ausente ou extensão não aceita
        """
        filename = secure_filename(getattr(file_storage, "filename", "") or "")
        if not filename:
            raise ShopError("Arquivo do comprovante é obrigatório")
        ext = os.path.splitext(filename)[1].lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ShopError(f"Extensão {ext or '(vazia)'} não aceita")

        os.makedirs(self.root, exist_ok=True)
        path = os.path.join(self.root, f"order_{order_id}_{int(time.time())}_{filename}")
        file_storage.save(path)
        logger.info(f"Comprovante do pedido {order_id} salvo em {path}")
        return path

    def resolve(self, path: str) -> str:
        """Caminho absoluto do comprovante, sempre dentro da raiz configurada."""
        if not path:
            raise ReceiptNotFound("Pedido sem comprovante")
        candidate = path if os.path.isabs(path) else os.path.join(self.root, path)
        resolved = os.path.realpath(candidate)
        if os.path.commonpath([resolved, self.root]) != self.root:
            logger.warning(f"Comprovante fora da raiz recusado: {path}")
            raise ReceiptNotFound("Comprovante não encontrado")
        if not os.path.isfile(resolved):
            raise ReceiptNotFound("Comprovante não encontrado")
        return resolved
