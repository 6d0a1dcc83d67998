"""
Taxonomie des erreurs de la boutique.

- Validation (400/404): renvoyées au client, jamais loguées comme incident.
- Signaux d'idempotence (DuplicateOrder, DuplicateEvent): attendus, traités
  comme un succès par le webhook pour que le fournisseur arrête ses relances.
- Intégrité (OrderNotFound, SignatureInvalid, InvalidWebhook, OrderAlreadyFinal):
  erreurs client (400) à surveiller.
- Les erreurs des dépendances externes (Stripe, Supabase, Redis) ne sont pas
  interceptées ici: elles remontent telles quelles à l'appelant.
"""


class StorefrontError(Exception):
    status_code = 400

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__

    def __str__(self) -> str:
        return self.message


# --- Validation ---
class InvalidArgument(StorefrontError):
    pass


class InvalidAmount(InvalidArgument):
    pass


class ProductUnavailable(StorefrontError):
    status_code = 404


class ProductNotPriced(StorefrontError):
    pass


class NoSuchCartItem(StorefrontError):
    status_code = 404


class EmptyCart(StorefrontError):
    pass


class InvalidEndpoint(StorefrontError):
    pass


# --- Idempotence ---
class DuplicateOrder(StorefrontError):
    status_code = 200


class DuplicateEvent(StorefrontError):
    status_code = 200


# --- Intégrité ---
class OrderNotFound(StorefrontError):
    pass


class SignatureInvalid(StorefrontError):
    pass


class InvalidWebhook(StorefrontError):
    pass


class OrderAlreadyFinal(StorefrontError):
    """
    Commande déjà finale au moment de l'ajout atomique.
    recorded: l'événement a tout de même été journalisé (politique ignore).
    """

    def __init__(self, message: str = "", order=None, recorded: bool = False):
        super().__init__(message)
        self.order = order
        self.recorded = recorded


# --- Configuration ---
class CheckoutConfigError(RuntimeError):
    pass
