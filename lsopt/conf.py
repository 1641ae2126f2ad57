"""

The default values for the global package configuration are provided in ``lsopt.conf.default_conf``.
The configuration variables are described here:

====================================== ==================== ==========================================================
Variable name                          Default value        Description
====================================== ==================== ==========================================================
``log-filename``                       ``~/.lsopt.log``     Name of file for logging.
``log-to-file``                        False                Whether or not to actually save logs to a file as well
``log-colors``                         False                Display logs in color (supported by xterm256)
``verbosity``                          vvv                  Level of verbosity for logs, the more v's the more verbose
``max-iterations``                     1000                 Iteration threshold of the default stopping criterion
``max-iterations-without-improvement`` 20                   Patience of the default stopping criterion
``damping``                            0.0                  Initial Levenberg-Marquardt damping factor
``learning-rate``                      1e-3                 Initial gradient descent learning rate
====================================== ==================== ==========================================================
"""
import os
import json
import copy

default_conf = {
    "log-filename": os.path.join(os.path.expanduser("~"), '.lsopt.log'),
    "log-to-file": False,
    "log-colors": False,
    "verbosity": 'vvv',
    "max-iterations": 1000,
    "max-iterations-without-improvement": 20,
    "damping": 0.0,
    "learning-rate": 1e-3,
}

def get_conf_filename():
    """
    The configuration file either lives in ~/.lsopt.json or is specified on the
    command line via the environment variables LSOPT_CONF_FILE
    """
    default = os.path.join(os.path.expanduser("~"), ".lsopt.json")
    return os.environ.get('LSOPT_CONF_FILE', default)

def transform(v):
    """
    Translate environment variables to ones corresponding to keys in the
    configuration.  In particular, env variables may be made with
    "LSOPT_"+key_name: max-iterations = LSOPT_MAX_ITERATIONS. Each env var
    is later checked to see if it has to do with LSOPT
    """
    return v.lower().replace('_', '-').replace('lsopt-', '', 1)

def coerce(key, value):
    """
    Environment variables are always strings; cast them to the type of the
    corresponding default value.
    """
    default = default_conf[key]
    if isinstance(default, bool):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    if isinstance(default, int):
        return int(value)
    if isinstance(default, float):
        return float(value)
    return value

def read_environment():
    """ Read all environment variables to see if they contain LSOPT """
    out = {}
    for k, v in os.environ.items():
        if not k.upper().startswith('LSOPT_'):
            continue
        key = transform(k)
        if key in default_conf:
            out[key] = coerce(key, v)
    return out

def read_conf_file():
    """ Read the configuration file, or nothing if there is none yet """
    filename = get_conf_filename()
    if not os.path.exists(filename):
        return {}
    with open(filename) as f:
        return json.load(f)

def create_default_conf():
    """ Dump the default_conf to the configuration file """
    with open(get_conf_filename(), 'w') as f:
        json.dump(default_conf, f, indent=4)

def load_conf():
    """
    Load the configuration with the priority:
        1. environment variables
        2. configuration file
        3. defaults here (default_conf)
    """
    conf = copy.copy(default_conf)
    conf.update(read_conf_file())
    conf.update(read_environment())
    return conf

def get_logfile():
    conf = load_conf()
    return conf['log-filename']
