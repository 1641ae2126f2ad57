import re
import sys

import logging

from pygments.lexer import RegexLexer, include
from pygments.token import (Punctuation, Text, Comment, Keyword, Name, String,
         Generic, Number, Error, Token)
from pygments import highlight
from pygments.formatters import get_formatter_by_name
from pygments.style import Style

class LogStyle(Style):
    background_color = "#000000"
    highlight_color = "#222222"
    default_style = "#cccccc"

    styles = {
        Token:                     "#cccccc",
        Comment.Special:           "bold #2BB537",
        Keyword:                   "#cdcd00",
        Keyword.Pseudo:            "bold #00cd00",
        Name:                      "",
        Name.Variable:             "#00cdcd",
        String:                    "#cd0000",
        Number:                    "#cd00cd",
        Number.Float:              "#cd00cd",
        Punctuation:               "nobold #FFF",
        Generic.Heading:           "nobold #FFF",
        Generic.Subheading:        "#800080",
        Generic.Error:             "bold #FF0000",
        Generic.Emph:              "bold #FFFFFF",
        Generic.Strong:            "bold #FFFFFF",
        Generic.Output:            "#888",
        Generic.Traceback:         "bold #04D",
        Error:                     "bg:#FF0000 bold #FFF"
    }


class LogLexer(RegexLexer):
    name = 'Optimizer Logs'
    aliases = ['lsopt-log']
    filenames = ['*.log']
    mimetypes = ['text/x-log']

    flags = re.VERBOSE
    _logger = r'-\s(lsopt)(\.([a-z._\-0-9]+))*\s-'
    _path   = r'(?:[a-zA-Z0-9_-]{0,}/{1,2}[a-zA-Z0-9_\.-]+)+'
    _keys   = r'(iteration|cost|damping|step|best|learning\ rate)'
    _float  = r'[-+]?(\d+\.\d*|\.\d+)([eE][-+]?\d+)?|[-+]?\d+[eE][-+]?\d+'
    _debug  = r'DEBUG'
    _info   = r'INFO'
    _warn   = r'WARNING'
    _error  = r'ERROR'
    _crit   = r'CRITICAL'
    _date   = r'\d{4}-\d{2}-\d{2}'
    _time   = r'\d{2}:\d{2}:\d{2},\d{3}'
    _ws     = r'(?:\s|//.*?\n|/[*].*?[*]/)+'

    tokens = {
        'whitespace': [
            (_ws, Text),
            (r'\n', Text),
            (r'\s+', Text),
            (r'\\\n', Text),
            (r'\s-\s', Text)
        ],
        'root': [
            include('whitespace'),
            (_logger, Generic.Emph),
            (_date, Generic.Output),
            (_time, Generic.Output),
            (_path, Generic.Subheading),
            (_keys, Name.Variable),
            (_float, Number.Float),
            (_warn, Generic.Strong),
            (_info, Generic.Traceback),
            (_debug, Comment.Special),
            (_error, Generic.Error),
            (_crit, Error),
            (r'[0-9]+', Number),
            ('[a-zA-Z_][a-zA-Z0-9_]*', Generic.Heading),
            (r'[{}`()\"\[\]@.,:-\\]', Punctuation),
            (r'[~!%^&*+=|?:<>/-]', Punctuation),
            (r"'", Punctuation)
        ]
    }


lexer = LogLexer()

def pygmentize(text, formatter='256', outfile=sys.stdout, style=LogStyle):
    fmtr = get_formatter_by_name(formatter, style=style)
    highlight(text, lexer, fmtr, outfile)

class PygmentHandler(logging.StreamHandler):
    """ A console handler which colors each record with pygments """
    def __init__(self, stream=None):
        super(PygmentHandler, self).__init__(stream)

    def emit(self, record):
        """ Send the message """
        try:
            message = self.format(record)
            pygmentize(message, outfile=self.stream)
            self.flush()
        except Exception:
            self.handleError(record)
