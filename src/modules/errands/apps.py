from django.apps import AppConfig


class ErrandsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.errands"
    label = "errands"

    def ready(self) -> None:
        from modules.errands.events import ErrandAssigned, ErrandCancelled, ErrandCreated, ErrandStatusChanged
        from modules.errands.handlers import (
            errand_assigned_handler,
            errand_cancelled_handler,
            errand_created_handler,
            errand_status_changed_handler,
        )
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(ErrandCreated, errand_created_handler)
        event_bus.subscribe(ErrandAssigned, errand_assigned_handler)
        event_bus.subscribe(ErrandStatusChanged, errand_status_changed_handler)
        event_bus.subscribe(ErrandCancelled, errand_cancelled_handler)
