import click

from reftoken.utilities.logging import Logger


class StdoutEmitter:

    default_color = 'white'

    def __init__(self,
                 verbosity: int = 1):

        self.name = self.__class__.__name__.lower()
        self.verbosity = verbosity
        self.log = Logger(self.name)

    def message(self,
                message: str,
                color: str = None,
                bold: bool = False,
                verbosity: int = 1):
        self.echo(message, color=color or self.default_color, bold=bold, verbosity=verbosity)
        # application messages are mirrored to the logger
        if verbosity > 1:
            self.log.debug(message)
        else:
            self.log.info(message)

    def echo(self,
             message: str = None,
             color: str = None,
             bold: bool = False,
             nl: bool = True,
             verbosity: int = 0):
        # user interactions; not logged
        if verbosity <= self.verbosity:
            click.secho(message=message, fg=color or self.default_color, bold=bold, nl=nl)

    def success(self, message: str, verbosity: int = 1):
        self.message(message, color='green', verbosity=verbosity)

    def banner(self, banner):
        if self.verbosity >= 1:
            click.echo(banner)

    def error(self, e):
        e_str = str(e)
        if self.verbosity >= 1:
            click.secho(message=e_str, fg="red")
        self.log.error(e_str)
