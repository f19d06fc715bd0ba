#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
usage: argdoc.py [-h] [FILE] [WORD ...]

parse command line args as per a top-of-file docstring of help lines

positional arguments:
  FILE        some python file begun by a docstring (often your main py file)
  WORD        an arg to parse for the file

options:
  -h, --help  show this help message and exit

quirks:
  plural args go to an english plural key, such as 'FILE [FILE ...]' to '.files'
  takes '[-x A | -y B]' in the usage line as a mutually exclusive group
  takes options without a metavar as counted, such as '-q' to '.quiet == 1'
  you lose your '-h' and '--help' options if you drop all your 'options:'

examples:
  argdoc.py -h                        # show this help message and exit
  argdoc.py tail.py                   # parse no args for the file doc
  argdoc.py tail.py -- -n 3 tail.py   # parse:  -n 3 tail.py
"""


from __future__ import print_function

import argparse
import ast
import inspect
import re
import sys


#
# Run as a command line:  ./argdoc.py ...
#


def main(argv):
    """Parse the Args for the Doc of a File, and print the Namespace"""

    args = parse_args(argv[1:])

    if not args.file:
        print(args)

        return 0

    with open(args.file, encoding="utf-8") as incoming:
        pychars = incoming.read()

    doc = ast.get_docstring(ast.parse(pychars), clean=False)

    words = list(args.words)
    if words[:1] == ["--"]:
        words = words[1:]

    file_args = parse_args(words, doc=doc)
    print(file_args)

    return 0


#
# Work with an ArgumentParser compiled from the DocString of the Calling Module
#


def parse_args(args=None, namespace=None, doc=None):
    """
    Call 'argparse.parse_args' on a Parser of the calling Module's DocString

    However,
    + work instead from the given Doc, if any
    + print help and exit zero when Args call for Help
    """

    alt_argv = sys.argv[1:] if (args is None) else args

    f = inspect.currentframe()
    alt_doc = module_find_doc(doc=doc, f=f)
    parser = ArgumentParser(doc=alt_doc)

    alt_namespace = parser.parse_args(alt_argv, namespace=namespace)

    return alt_namespace


def format_usage(doc=None):
    """Call 'argparse.format_usage' on a Parser of the calling Module's DocString"""

    f = inspect.currentframe()
    alt_doc = module_find_doc(doc=doc, f=f)
    parser = ArgumentParser(doc=alt_doc)

    chars = parser.format_usage()

    return chars


def module_find_doc(doc, f):
    """Take the Doc as given, else pick the Doc out of the Calling Module"""

    if doc is not None:

        return doc

    module = inspect.getmodule(f.f_back)
    module_doc = module.__doc__

    return module_doc


class ArgumentParser(argparse.ArgumentParser):
    """Form an ArgumentParser with Args and Options and Epilog, from a Doc"""

    def __init__(self, doc):

        paras = textwrap_split_paras(doc)
        if not paras[1:]:
            paras = textwrap_split_paras("usage: prog\n\ndesc")

        # Pick the ArgParse Prog out of the top line

        usage_words = paras[0][0].split()
        prog = usage_words[1] if usage_words[1:] else "prog"

        # Pick the ArgParse Description out of the 2nd Paragraph of Doc

        description = " ".join(_.strip() for _ in paras[1])

        # Take up all the rest of the Doc as the ArgParse Epilog

        epilog = None
        epi = parser_epi_from_paras(paras)
        if epi:
            epilog_at = doc.index(epi)
            epilog = doc[epilog_at:].rstrip()

        super(ArgumentParser, self).__init__(
            prog=prog,
            description=description,
            add_help=parser_add_help_from_doc(doc),
            formatter_class=argparse.RawTextHelpFormatter,
            epilog=epilog,
        )

        # Add zero or more Args and/or Options from the Doc

        parser_adds_from_paras(self, paras=paras)


def parser_add_help_from_doc(doc):
    """Find the conventional H/ Help Option and return True, else False"""

    rejoined = " ".join(doc.split())

    return "-h, --help show this help message and exit" in rejoined


def parser_epi_from_paras(paras):
    """Pick the first Line of an ArgParse Epilog out of the Paras of a Doc"""

    paras = paras[2:]  # Skip over Usage and Desc

    if paras and is_args_para(paras[0]):
        paras = paras[1:]

    if paras and is_options_para(paras[0]):
        paras = paras[1:]

    if paras:
        epi = paras[0][0]

        return epi

    return None


def is_args_para(para):
    return para[0].startswith("positional arguments")


def is_options_para(para):
    return para[0].startswith("options") or para[0].startswith("optional arguments")


#
# Rip Add_Argument calls out from the Doc
#


def parser_adds_from_paras(parser, paras):
    """Add the Positional Arguments and/or Options listed in the Paras of a Doc"""

    usage = " ".join(_.strip() for _ in paras[0])
    assert usage.startswith("usage: "), repr(usage)

    groups = parser_groups_from_usage(parser, usage=usage)

    paras = paras[2:]  # Skip over Usage and Desc

    if paras and is_args_para(paras[0]):
        for line in textwrap_para_unbreakdent_lines(para=paras[0][1:]):
            parser_add_arg_line(parser, usage=usage, line=line)
        paras = paras[1:]

    if paras and is_options_para(paras[0]):
        for line in textwrap_para_unbreakdent_lines(para=paras[0][1:]):
            parser_add_option_line(parser, groups=groups, line=line)


def parser_groups_from_usage(parser, usage):
    """Form one Mutually Exclusive Group per '[-x A | -y B]' of the Usage"""

    groups = dict()

    for match in re.finditer(r"\[([^\[\]]*[|][^\[\]]*)\]", string=usage):
        alts = match.group(1).split("|")
        group = parser.add_mutually_exclusive_group()
        for alt in alts:
            opt = alt.split()[0]
            groups[opt] = group

    return groups

    # such as:  "[-c BYTES | -n LINES]"  ->  {"-c": group, "-n": group}


def parser_add_arg_line(parser, usage, line):
    """Add one Positional Arg from one Doc Line"""

    words = line.split()
    if not words:

        return

    # Divide the Line into Metavar and Help

    word = words[0]

    after_word = line.index(word) + len(word)
    help_tail = line[after_word:].strip()

    dest = word.lower()  # Python 3 could '.casefold()'
    metavar = word

    # Take mentions of NArgs ? or + or * from Usage

    nargs = None
    if "[{}]".format(metavar) in usage:
        nargs = "?"  # argparse.OPTIONAL
    elif " {} [{} ...]".format(metavar, metavar) in usage:
        dest = plural_en(metavar.lower())
        nargs = "+"  # argparse.ONE_OR_MORE
    elif "[{} ...]".format(metavar) in usage:
        dest = plural_en(metavar.lower())
        nargs = "*"  # argparse.ZERO_OR_MORE

    alt_help_tail = help_tail.replace("%", "%%") if help_tail else None
    parser.add_argument(dest, metavar=metavar, nargs=nargs, help=alt_help_tail)


def parser_add_option_line(parser, groups, line):
    """Add one Option, spelled one or two ways, from one Doc Line"""

    (dests, metavar, help_tail) = split_option_line(line)
    if not dests:

        return

    # Call victory when Parser Add_Help already did add this Option

    if dests == ["-h", "--help"]:
        if parser.add_help:

            return

    # Add the Option to its Mutually Exclusive Group, if any

    adder = parser
    for dest in dests:
        if dest in groups:
            adder = groups[dest]

    alt_help_tail = help_tail.replace("%", "%%") if help_tail else None

    if metavar is None:
        adder.add_argument(*dests, action="count", default=0, help=alt_help_tail)
    else:
        adder.add_argument(*dests, metavar=metavar, help=alt_help_tail)


def split_option_line(line):
    """Split an Option Line into its Dashed Options, its Metavar, and its Help"""

    dests = list()
    metavar = None

    words = line.split()
    index = 0
    while words[index:] and words[index].startswith("-"):
        word = words[index]
        index += 1

        dests.append(word.rstrip(","))
        more = word.endswith(",")

        # Take the Metavar after the Dashed Option, if any

        if (not more) and words[index:]:
            next_word = words[index]
            if next_word.rstrip(",").isupper():
                metavar = next_word.rstrip(",")
                index += 1
                more = next_word.endswith(",")

        if not more:
            break

    help_tail = " ".join(words[index:])

    return (dests, metavar, help_tail)

    # such as:  "-n LINES, --lines LINES  how many"  ->  (["-n", "--lines"], "LINES", "how many")
    # such as:  "-q, --quiet  say less"  ->  (["-q", "--quiet"], None, "say less")


def textwrap_para_unbreakdent_lines(para):
    """Join the continuation lines dented beneath each leading line"""

    above_dent = None

    lines = list()
    for line in para:
        lstripped = line.lstrip()
        dent = line[: -len(lstripped)] if (line != lstripped) else ""

        if lines:
            if len(dent) > len(above_dent):
                lines[-1] += " " + line.strip()

                continue

        lines.append(line)
        above_dent = dent

    return lines

    # such as:  [' a', '    b', ' c']  ->  [' a b', ' c']


# deffed in many files  # missing from docs.python.org
def textwrap_split_paras(text):
    """Divide the Chars into a List of non-empty Lists of possibly dented Lines"""

    paras = list()

    para = None
    for line in (text.strip("\n") + "\n\n").splitlines():
        if not line.strip():
            if para is not None:
                paras.append(para)
            para = None
        elif not para:
            para = [line]
        else:
            para.append(line)

    return paras

    # such as:  "  a\n    b\n  c\n"  ->  [['  a', '    b', '  c']]


# deffed in many files  # missing from docs.python.org
def plural_en(word):
    """Guess the English plural of a word"""

    consonants = "bcdfghjklmnpqrstvwxz"  # without "y"

    if re.match(r"^.*ex$", string=word):
        plural = word[: -len("ex")] + "ices"  # vortex, vortices
    elif re.match(r"^.*f$", string=word):
        plural = word[: -len("f")] + "ves"  # leaf, leaves
    elif re.match(r"^.*is$", string=word):
        plural = word[: -len("is")] + "es"  # basis, bases
    elif re.match(r"^.*[{}]y$".format(consonants), string=word):
        plural = word[: -len("y")] + "ies"  # lorry, lorries
    elif re.match(r"^.*(ch|s|sh|x|z)$", string=word):
        plural = word + "es"  # stitch bus ash box lutz
    else:
        plural = word + "s"  # file, files

    return plural


if __name__ == "__main__":
    sys.exit(main(sys.argv))
