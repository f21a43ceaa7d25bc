import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from booking_backend.core import config
from booking_backend.database import Base, engine, ensure_appointment_schema, ensure_blocked_time_schema
from booking_backend.models import appointment, appointment_type, blocked_time, booking_day, owner  # noqa: F401
from booking_backend.routes import availability_routes, blocked_time_routes, booking_routes

logging.basicConfig(level=logging.DEBUG if config.DEBUG else logging.INFO)

config.validate_runtime_config()

app = FastAPI(title='Booking Availability API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_appointment_schema()
        ensure_blocked_time_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'Booking Availability API Running'}


app.include_router(availability_routes.router, prefix='/availability')
app.include_router(booking_routes.router, prefix='/availability')
app.include_router(blocked_time_routes.router, prefix='/availability')
