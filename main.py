"""Main entry point for running the FastAPI application with auto-reload."""
import uvicorn

from screening.config import settings

if __name__ == "__main__":
    print(f"Starting {settings.app_name} v{settings.version}")
    print(f"Debug mode: {settings.debug}")
    print(f"Dashboard sheet: {settings.sheets.dashboard_spreadsheet_id}/{settings.sheets.dashboard_range}")
    print(f"Service account key: {'configured' if settings.google.service_account_key_base64 else 'MISSING'}")
    print(f"Auto-reload: {'Enabled' if settings.debug else 'Disabled'}")
    print("-" * 50)

    uvicorn.run(
        "screening.api:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        reload_dirs=["screening"] if settings.debug else None,
        log_level=settings.logging.level.lower(),
    )
