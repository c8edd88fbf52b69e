from field_inspection.routes.inspections import router as inspections_router

__all__ = ["inspections_router"]
