""" Module that contains classes for the logging of messages during the coupling setup"""

import logging
import sys
import os
from mpi4py.MPI import Wtime as time

USE_COLORS = os.getenv("PYCOUPLETOOLS_USE_COLORS", "False").lower() in ("true", "1", "t")
DEBUG = os.getenv("PYCOUPLETOOLS_DEBUG", "False").lower() in ("true", "1", "t")
HIDE = os.getenv("PYCOUPLETOOLS_HIDE_LOG", "False").lower() in ("true", "1", "t")


# Modified from https://stackoverflow.com/questions/384076/how-can-i-color-python-logging-output
class CustomFormatter(logging.Formatter):
    """Custom formatter for the log messages"""

    grey = "\x1b[38;20m"
    yellow = "\x1b[33;20m"
    red = "\x1b[31;20m"
    bold_red = "\x1b[31;1m"
    reset = "\x1b[0m"
    formatt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    FORMATS_colored = {
        logging.DEBUG: grey + formatt + reset,
        logging.INFO: grey + formatt + reset,
        logging.WARNING: yellow + formatt + reset,
        logging.ERROR: red + formatt + reset,
        logging.CRITICAL: bold_red + formatt + reset,
    }

    FORMATS_no_color = {
        logging.DEBUG: formatt,
        logging.INFO: formatt,
        logging.WARNING: formatt,
        logging.ERROR: formatt,
        logging.CRITICAL: formatt,
    }

    def format(self, record):

        if USE_COLORS:
            log_fmt = self.FORMATS_colored.get(record.levelno)
        else:
            log_fmt = self.FORMATS_no_color.get(record.levelno)
        formatter = logging.Formatter(log_fmt)
        return formatter.format(record)


class Logger:
    """
    Rank aware logger.

    Messages of level "debug", "info" and "warning" are only written by rank 0,
    "info_all", "error" and "critical" are written by every rank.

    Parameters
    ----------
    level : int, optional
        Logging level. Default is logging.INFO.
        Overridden by the PYCOUPLETOOLS_DEBUG and PYCOUPLETOOLS_HIDE_LOG variables.
    comm : Collective
        Object that provides ``rank`` and ``barrier()``.
        Any of the collectives in pycoupletools.comm can be used.
    module_name : str, optional
        Name of the underlying logging.Logger.
    """

    def __init__(self, level=None, comm=None, module_name=None):

        if isinstance(level, type(None)):
            level = logging.INFO
        if DEBUG:
            level = logging.DEBUG
        if HIDE:
            level = logging.CRITICAL

        self.comm = comm

        if module_name:
            logger = logging.getLogger(module_name)
        else:
            logger = logging.getLogger(__name__)

        logger.setLevel(level)

        # create console handler with a higher log level
        if not logger.handlers:
            ch = logging.StreamHandler(sys.stdout)
            ch.setLevel(level)
            ch.setFormatter(CustomFormatter())
            logger.addHandler(ch)

        logger.propagate = False

        self.log = logger

        self.time = time()
        self.sync_time = {}

    def tic(self):
        """
        Store the current time.
        """

        self.time = time()

    def sync_tic(self, id=0):
        """
        Store the current time after synchronizing all ranks.
        """

        self.comm.barrier()
        self.sync_time[id] = time()

    def toc(self, message=None):
        """
        Write elapsed time since the last call to tic.
        """

        if message is None:
            self.write("info", f"Elapsed time: {time() - self.time}s")
        else:
            self.write("info", f"{message} - Elapsed time: {time() - self.time}s")

    def sync_toc(self, id=0, message=None, time_message="Elapsed time: "):
        """
        Write elapsed time since the last call to sync_tic with the same id.
        """

        self.comm.barrier()
        if message is None:
            self.write("info", f"{time_message}{time() - self.sync_time[id]}s")
        else:
            self.write("info", f"{message} - {time_message}{time() - self.sync_time[id]}s")

    def write(self, level, message):
        """Method that writes messages in the log"""
        comm = self.comm
        rank = comm.rank

        if level == "debug":
            if rank == 0:
                self.log.debug(message)

        elif level == "info":
            if rank == 0:
                self.log.info(message)

        elif level == "info_all":
            self.log.info(f"Rank {rank}: {message}")
            comm.barrier()

        elif level == "warning":
            if rank == 0:
                self.log.warning(message)

        elif level == "error":
            self.log.error(f"Rank {rank}: {message}")

        elif level == "critical":
            self.log.critical(f"Rank {rank}: {message}")

        else:
            raise ValueError(f"Logging level '{level}' not recognized.")
