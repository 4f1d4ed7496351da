import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.exceptions import DatosInvalidosError, MisComprasError

settings = get_settings()
logger = logging.getLogger(__name__)


def _seed_admin_user() -> None:
    """Create the bootstrap admin account if it does not exist yet."""
    from app.database import SessionLocal
    from app.models.usuario import Usuario
    from app.utils.security import hash_password

    db = SessionLocal()
    try:
        admin = db.query(Usuario).filter(Usuario.email == settings.ADMIN_EMAIL).first()
        if admin is None:
            db.add(
                Usuario(
                    username="admin",
                    email=settings.ADMIN_EMAIL,
                    password_hash=hash_password(settings.ADMIN_PASSWORD),
                    nombre_completo="Administrador MisCompras",
                    rol="ADMIN",
                    activo=True,
                )
            )
            db.commit()
            logger.info("[SEED] Admin creado: %s", settings.ADMIN_EMAIL)
        else:
            logger.info("[SEED] Admin ya existe: %s", settings.ADMIN_EMAIL)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: storage folders for attachments and generated documents
    settings.UPLOADS_DIR.mkdir(parents=True, exist_ok=True)
    settings.DOCUMENTS_DIR.mkdir(parents=True, exist_ok=True)

    # Startup: seed admin user
    try:
        _seed_admin_user()
    except Exception as exc:
        logger.warning("Could not seed admin user on startup: %s", exc)
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Error envelope: {"error": <codigo>, "detail": <mensaje>}
# ---------------------------------------------------------------------------


@app.exception_handler(MisComprasError)
async def miscompras_error_handler(request: Request, exc: MisComprasError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.codigo, exc.mensaje)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.codigo, "detail": exc.mensaje},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errores = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    return JSONResponse(
        status_code=DatosInvalidosError.status_code,
        content={"error": DatosInvalidosError.codigo, "detail": errores},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    detail = str(exc) if settings.DEBUG else "Error interno del servidor."
    return JSONResponse(
        status_code=500,
        content={"error": "ERROR_INTERNO", "detail": detail},
    )


@app.get("/api/health")
def health_check():
    return {"status": "ok", "app": settings.APP_NAME}


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

from app.routers import auth  # noqa: E402

app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])

# Requirement lifecycle
from app.routers import requerimientos  # noqa: E402

app.include_router(
    requerimientos.router,
    prefix="/api/requerimientos",
)

# Mass creation / mass approval
from app.routers import grupos  # noqa: E402

app.include_router(
    grupos.router,
    prefix="/api/grupos",
)

# Payment account
from app.routers import pagos  # noqa: E402

app.include_router(
    pagos.router,
    prefix="/api/pagos",
)

# Invoices
from app.routers import facturas  # noqa: E402

app.include_router(
    facturas.router,
    prefix="/api/facturas",
)

# Budget ledger
from app.routers import presupuestos  # noqa: E402

app.include_router(
    presupuestos.router,
    prefix="/api/presupuestos",
)

# Budget adjustment requests
from app.routers import ajustes  # noqa: E402

app.include_router(
    ajustes.router,
    prefix="/api/ajustes",
)

# In-app notifications
from app.routers import notificaciones  # noqa: E402

app.include_router(
    notificaciones.router,
    prefix="/api/notificaciones",
)

# Excel reports
from app.routers import reportes  # noqa: E402

app.include_router(
    reportes.router,
    prefix="/api/reportes",
)

# Catalogues and their administration
from app.routers import catalogos  # noqa: E402

app.include_router(
    catalogos.router,
    prefix="/api/catalogos",
)

# User administration
from app.routers import usuarios  # noqa: E402

app.include_router(
    usuarios.router,
    prefix="/api/usuarios",
)
