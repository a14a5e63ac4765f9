from .health import health_bp
from .auth import auth_bp
from .admin import admin_bp
from .colleges import colleges_bp
from .departments import departments_bp
from .students import students_bp
from .teachers import teachers_bp
from .users import users_bp
from .profile import profile_bp
from .infrastructures import infrastructures_bp
from .uploads import uploads_bp
from .store_catalog import store_bp
from .cart import cart_bp
from .addresses import addresses_bp
from .orders import orders_bp
from .store_admin import store_admin_bp
from .payments import payments_bp
from .stripe_webhook import webhook_bp

ALL_BLUEPRINTS = (
    health_bp,
    auth_bp,
    admin_bp,
    colleges_bp,
    departments_bp,
    students_bp,
    teachers_bp,
    users_bp,
    profile_bp,
    infrastructures_bp,
    uploads_bp,
    store_bp,
    cart_bp,
    addresses_bp,
    orders_bp,
    store_admin_bp,
    payments_bp,
    webhook_bp,
)
