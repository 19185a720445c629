"""
Errores del motor de precios

Cada error lleva el código HTTP con el que los routers lo exponen.
Los problemas de cupones NO se lanzan: viajan en el resultado de validación.
"""
from fastapi import status


class PricingError(Exception):
    """Error base del motor de precios"""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ProductNotFoundError(PricingError):
    """El producto no existe en el catálogo"""
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, product_id: int):
        super().__init__(f"Producto {product_id} no encontrado")
        self.product_id = product_id


class InvalidCartError(PricingError):
    """Líneas de carrito mal formadas; se rechaza la solicitud completa"""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class QuotaExceededError(PricingError):
    """Un cupón o promoción alcanzó su límite de usos al confirmar la venta"""
    status_code = status.HTTP_409_CONFLICT


class InconsistentDataError(PricingError):
    """Referencias rotas en el catálogo (ej. cupón apuntando a una promoción borrada)"""
    status_code = status.HTTP_409_CONFLICT
