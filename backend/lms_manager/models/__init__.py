# Importa aquí los modelos para que SQLAlchemy los "vea" al crear tablas
from lms_manager.models.teams import Group, Team  # noqa: F401
from lms_manager.models.players import Player  # noqa: F401
from lms_manager.models.games import Game, Participant  # noqa: F401
from lms_manager.models.rounds import Round, Pick  # noqa: F401
