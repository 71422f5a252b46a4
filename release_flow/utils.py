"Various utilities"

import os


class Color:
    "Colors for the console"
    @staticmethod
    def red(text):
        "red"
        return f"\033[31m{text}\033[0m"
    @staticmethod
    def green(text):
        "green"
        return f"\033[32m{text}\033[0m"
    @staticmethod
    def blue(text):
        "blue"
        return f"\033[34m{text}\033[0m"
    @staticmethod
    def bold(text):
        "bold"
        return f"\033[1m{text}\033[0m"


def read(file_):
    "Read file helper"
    with open(file_, encoding='utf-8') as text_io_wrapper:
        return text_io_wrapper.read()


def write(file_, data):
    "Write file helper"
    with open(file_, 'w', encoding='utf-8') as text_io_wrapper:
        return text_io_wrapper.write(data)


def set_output(name, value):
    """Publish a step output.

    Appends ``name=value`` to the file named by ``GITHUB_OUTPUT`` when the
    variable is set. Returns True if the output was written.
    """
    output_file = os.environ.get('GITHUB_OUTPUT')
    if not output_file:
        return False
    with open(output_file, 'a', encoding='utf-8') as text_io_wrapper:
        text_io_wrapper.write(f"{name}={value}\n")
    return True
