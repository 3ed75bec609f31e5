# lumbarong/core/errors.py
# Иерархия исключений сервиса. Каждый класс знает свой HTTP-код;
# обработчики в main.py отдают их клиенту как {"message": ...}.


class MarketplaceError(Exception):
    """Базовое исключение для всех ошибок сервиса."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationFault(MarketplaceError):
    """Отсутствуют или некорректны обязательные поля запроса."""

    status_code = 400


class BusinessRuleError(MarketplaceError):
    """Запрос корректен, но нарушает правила жизненного цикла заказа."""

    status_code = 400


class InsufficientStockError(BusinessRuleError):
    """Товара нет или остатка не хватает для резервирования."""

    def __init__(self, product_id: int, product_name: str | None = None):
        self.product_id = product_id
        self.product_name = product_name
        super().__init__(f"Insufficient stock for {product_name or 'Unknown Product'}")


class InvalidTransitionError(BusinessRuleError):
    """Переход статуса не разрешён таблицей переходов."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot change order status from {current} to {target}")


class AuthenticationError(MarketplaceError):
    status_code = 401


class AuthorizationError(MarketplaceError):
    status_code = 403


class NotFoundError(MarketplaceError):
    status_code = 404


class PersistenceError(MarketplaceError):
    """Сбой БД (таймаут блокировки, deadlock, потеря соединения). Запрос можно повторить."""

    status_code = 500

    def __init__(self, message: str = "Database error, please retry the request"):
        super().__init__(message)
