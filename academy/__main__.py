import uvicorn

from academy.config import settings


def main():
    uvicorn.run('academy.main:app', host=settings.app_host, port=settings.app_port, log_level='info')


if __name__ == '__main__':
    main()
