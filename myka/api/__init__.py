from . import dailies, install, journal, notifications, tracking

BLUEPRINTS = (
    notifications.bp,
    install.bp,
    tracking.todos_bp,
    tracking.priorities_bp,
    tracking.meals_bp,
    tracking.weight_bp,
    tracking.water_bp,
    tracking.routine_bp,
    journal.bp,
    dailies.bp,
)


def register_blueprints(app) -> None:
    for bp in BLUEPRINTS:
        app.register_blueprint(bp)
