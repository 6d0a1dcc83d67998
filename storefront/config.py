# storefront.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=True)

"""
Configuration centrale de la boutique.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, Stripe, Redis)
- Expose les paramètres du checkout (devise, mode UI, URLs de retour, livraison)
- Expose la politique appliquée aux événements tardifs sur une commande finalisée
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

BASE_URL = _clean_env(os.getenv("BASE_URL") or "http://localhost:8000").rstrip("/")

# Supabase: catalogue produits + commandes (clé service-role côté serveur)
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or "")
if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
SUPABASE_URL = SUPABASE_URL.rstrip("/")

PRODUCTS_TABLE = os.getenv("PRODUCTS_TABLE", "products")
ORDERS_TABLE = os.getenv("ORDERS_TABLE", "orders")

# Stripe: clés publiques/privées et secret webhook
STRIPE_PUBLIC_KEY = _clean_env(os.getenv("STRIPE_PUBLIC_KEY") or "")
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")
STRIPE_WEBHOOK_SECRET = _clean_env(os.getenv("STRIPE_WEBHOOK_SECRET") or "")

# Checkout: devise du panier et mode d'affichage du formulaire de paiement
CHECKOUT_CURRENCY = _clean_env(os.getenv("CHECKOUT_CURRENCY") or "EUR").upper()
CHECKOUT_UI_MODE = _clean_env(os.getenv("CHECKOUT_UI_MODE") or "hosted").lower()

# URLs de retour (hosted: success/cancel, embedded: return)
CHECKOUT_SUCCESS_URL = _clean_env(os.getenv("CHECKOUT_SUCCESS_URL") or f"{BASE_URL}/checkout/success")
CHECKOUT_CANCEL_URL = _clean_env(os.getenv("CHECKOUT_CANCEL_URL") or f"{BASE_URL}/cart")
CHECKOUT_RETURN_URL = _clean_env(os.getenv("CHECKOUT_RETURN_URL") or f"{BASE_URL}/checkout/return")

# Livraison: fichier JSON optionnel (voir storefront.checkout.models.ShippingConfig)
SHIPPING_CONFIG_PATH = _clean_env(os.getenv("SHIPPING_CONFIG_PATH") or "")

# Événement asynchrone reçu sur une commande déjà payée/échouée: ignore | reject | allow
ORDER_TERMINAL_POLICY = _clean_env(os.getenv("ORDER_TERMINAL_POLICY") or "ignore").lower()

# Redis: stockage du panier par session de navigation
CART_REDIS_URL = _clean_env(os.getenv("CART_REDIS_URL") or "redis://127.0.0.1:6379/1")
CART_SESSION_TTL = int(os.getenv("CART_SESSION_TTL", str(60 * 60 * 24 * 14)))

# Cookies / sécurité
SESSION_SECRET_KEY = os.getenv("SESSION_SECRET_KEY", "replace_me_with_a_long_random_secret")
COOKIE_SECURE = (os.getenv("COOKIE_SECURE", "false").lower() == "true")

# CORS (dev)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]

# Clé du cookie de session contenant l'identifiant opaque du panier
CART_SESSION_KEY = "cart_id"

# Commandes lancées depuis ce navigateur (page de succès: vue complète et vidage du panier)
CHECKOUT_ORDERS_SESSION_KEY = "checkout_order_ids"
CHECKOUT_ORDERS_KEPT = 5
