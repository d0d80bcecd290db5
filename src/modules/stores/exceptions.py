"""Store domain exceptions."""


class StoreNotFound(Exception):
    pass


class StoreClosed(Exception):
    pass


class ProductNotFound(Exception):
    pass


class ProductUnavailable(Exception):
    pass
