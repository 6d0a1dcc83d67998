"""
Gestionnaires d'exceptions.
- StorefrontError: rendue en JSON {"detail": message} avec son status_code.
- HTTPException: réponse JSON FastAPI standard.
Les erreurs de validation ne sont pas loguées comme incidents.
"""
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from storefront.errors import StorefrontError

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StorefrontError)
    async def storefront_error(request: Request, exc: StorefrontError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=getattr(exc, "headers", None))
