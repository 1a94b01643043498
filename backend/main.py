import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from backend.core import config
from backend.core.errors import register_exception_handlers
from backend.database import init_db
from backend.routes import candidate_routes, user_routes

app = FastAPI(title='Voting API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials='*' not in config.CORS_ORIGINS,
    allow_methods=['*'],
    allow_headers=['*'],
)

register_exception_handlers(app)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        init_db()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL.')


@app.get('/')
def root():
    return {'status': 'Voting API Running'}


app.include_router(user_routes.router, prefix='/user')
app.include_router(candidate_routes.router, prefix='/candidate')


def run() -> None:
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
    logger.info('Listening on port %s', config.PORT)
    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == '__main__':
    run()
