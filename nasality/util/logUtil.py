import logging
import os
from typing import Iterable


class Logger(object):

    '''
        Log level:
            classroom runs: INFO
            debugging the pipeline: DEBUG
    '''
    level_relations = {
        'debug': logging.DEBUG,
        'info': logging.INFO,
        'warning': logging.WARNING,
        'error': logging.ERROR
    }

    def __init__(self, root_path, log_name, level='info', fmt='%(asctime)s - %(levelname)s: %(message)s'):
        if level not in self.level_relations:
            raise ValueError(f"unknown log level: {level!r}")
        # directory the log/ folder is created under
        self.root_path = root_path

        self.log_name = log_name
        self.fmt = fmt

        self.logger = logging.getLogger(log_name)
        self.logger.setLevel(self.level_relations.get(level))

    '''
         File handler writes to <root_path>/log/<log_name>.log, the stream
         handler echoes the same records to the console.
    '''
    def get_logger(self, console=True):

        path = os.path.join(self.root_path, 'log')
        os.makedirs(path, exist_ok=True)
        file_name = os.path.join(path, self.log_name + '.log')

        # repeated runs in one interpreter must not stack handlers
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)

        formatter = logging.Formatter(self.fmt)

        fileHandler = logging.FileHandler(file_name, encoding="utf-8", mode="a")
        fileHandler.setFormatter(formatter)
        self.logger.addHandler(fileHandler)

        if console:
            streamHandler = logging.StreamHandler()
            streamHandler.setFormatter(formatter)
            self.logger.addHandler(streamHandler)

        self.logger.propagate = False
        return self.logger


def log_block(logger: logging.Logger, title: str, lines: Iterable[str]) -> None:
    bullet_lines = "\n".join(f"    • {line}" for line in lines)
    logger.info("%s\n%s", title, bullet_lines)
