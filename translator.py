#!/usr/bin/python3
"""Транслятор Hack asm в машинный код.

program ::= { line }

line ::= label [ comment ] "\n"
       | instr [ comment ] "\n"
       | [ comment ] "\n"

label ::= "(" symbol ")"

instr ::= "@" ( integer | symbol )
        | [ dest "=" ] comp [ ";" jump ]

integer ::= { <any of "0-9"> }-

symbol ::= <any except "0-9"> { <any> }

comment ::= "//" <any symbols except "\n">

Пробельные символы внутри строки ничего не значат и выбрасываются.

"""

import logging
import re
import sys

from isa import Exceptions, Term, AddressCommand, ComputeCommand, LabelCommand, InvalidCommand, InstructionSet, \
    PredefinedSymbols, HackCodeFile


class Parser:
    """
    Разбор одной строки исходного текста.

    Позволяет понять, что в строке:

    - `@` адрес / символ
    - `(метка)`
    - `dest=comp;jump`
    - что-то непонятное (такая строка просто пропускается)
    """

    comment_marker = "//"
    address_marker = "@"
    label_open, label_close = "(", ")"
    dest_separator = "="
    jump_separator = ";"

    whitespace_regex = re.compile(r"\s+")
    number_regex = re.compile(r"[0-9]+")

    @staticmethod
    def get_meaningful_token(line: str):
        """
        Извлекаем из строки содержательный токен: отрезаем комментарий и выкидываем все пробельные символы.
        """
        line = line.split(Parser.comment_marker, 1)[0]
        return Parser.whitespace_regex.sub("", line)

    @staticmethod
    def is_number(operand: str):
        return Parser.number_regex.match(operand) is not None

    @staticmethod
    def is_literal(operand: str):
        return Parser.number_regex.fullmatch(operand) is not None

    @staticmethod
    def is_address(token: str):
        return token.startswith(Parser.address_marker)

    @staticmethod
    def is_label(token: str):
        return token.startswith(Parser.label_open) and token.endswith(Parser.label_close)

    @staticmethod
    def is_compute(token: str):
        return Parser.dest_separator in token or Parser.jump_separator in token

    @staticmethod
    def parse_compute(token: str):
        dest, comp_jump = "", token
        if Parser.dest_separator in token:
            dest, comp_jump = token.split(Parser.dest_separator, 1)

        comp, jump = comp_jump, ""
        if Parser.jump_separator in comp_jump:
            comp, jump = comp_jump.split(Parser.jump_separator, 1)

        return ComputeCommand(dest, comp, jump)

    @staticmethod
    def parse_command(token: str):
        """
        Классифицировать уже очищенный токен. Пустой токен разбирать нельзя.
        """
        assert token != "", "Пустая строка не команда"

        if Parser.is_address(token):
            return AddressCommand(token[len(Parser.address_marker):])

        if Parser.is_label(token):
            return LabelCommand(token[1:-1])

        if Parser.is_compute(token):
            return Parser.parse_compute(token)

        return InvalidCommand(token)

    @staticmethod
    def parse_line(line: str):
        """
        Строка исходного текста -> команда, либо `None` если в строке только комментарий / пробелы.
        """
        token = Parser.get_meaningful_token(line)
        if token == "":
            return None

        return Parser.parse_command(token)


class SymbolTable:
    """
    Символ -> адрес. Изначально содержит `PredefinedSymbols`, только растет.
    """

    def __init__(self):
        self.symbols = dict(PredefinedSymbols.symbol_to_address_dict)
        self.next_variable_address = PredefinedSymbols.first_variable_address
        self.label_names = set()
        self.variable_names = []

    def contains(self, name: str):
        return name in self.symbols

    def resolve(self, name: str):
        return self.symbols[name]

    def bind(self, name: str, address: int):
        self.label_names.add(name)
        self.symbols[name] = address

    def assign_variable(self, name: str):
        if name not in self.symbols:
            self.symbols[name] = self.next_variable_address
            self.variable_names.append(name)
            self.next_variable_address += 1

            logging.debug("Переменная `%s` -> %d", name, self.symbols[name])

        return self.symbols[name]

    def labels(self):
        return {name: self.symbols[name] for name in self.label_names}

    def variables(self):
        return {name: self.symbols[name] for name in self.variable_names}


def read_terms(text):
    """
    Один раз читаем исходный текст в список `Term`, оба прохода идут по нему.
    Пустые строки и комментарии выбрасываются, номера строк остаются исходными.
    Строки делим только по переводу строки, прочие управляющие символы - пробельные внутри строки.
    """
    terms = []
    for line_num, raw_line in enumerate(text.split("\n"), 1):
        token = Parser.get_meaningful_token(raw_line)
        if token == "":
            continue

        terms.append(Term(line_num, token))

    return terms


def translate_stage_1(terms, symbols):
    """
    Первый проход транслятора.

    Считаем адреса инструкций в ROM и запоминаем адреса меток.
    """

    rom_address = 0

    for term in terms:
        command = Parser.parse_command(term.mnemonic)

        if isinstance(command, LabelCommand):
            # метка указывает на следующую инструкцию
            symbols.bind(command.symbol, rom_address)
            logging.debug("Метка `%s` -> %d", command.symbol, rom_address)
        elif isinstance(command, (AddressCommand, ComputeCommand)):
            rom_address += 1

    return symbols


def resolve_address(command, symbols, term):
    operand = command.symbol

    if operand == "":
        raise Exceptions.BadAddressError(operand, term)

    if not Parser.is_number(operand):
        return symbols.assign_variable(operand)

    if not Parser.is_literal(operand):
        raise Exceptions.BadAddressError(operand, term)

    address = int(operand)
    if address > InstructionSet.address_max_uint:
        logging.warning("[%d] `%s` - адрес обрезан до %d бит", term.line, term.mnemonic, InstructionSet.address_bits)
        address = address & InstructionSet.address_max_uint

    return address


def translate_stage_2(terms, symbols):
    """
    Второй проход транслятора.

    Выделяем адреса переменным и кодируем инструкции в машинные слова.
    """

    code = []

    for term in terms:
        command = Parser.parse_command(term.mnemonic)

        if isinstance(command, AddressCommand):
            command = AddressCommand(str(resolve_address(command, symbols, term)))
        elif not isinstance(command, ComputeCommand):
            if isinstance(command, InvalidCommand):
                logging.debug("[%d] `%s` - не команда, пропускаем", term.line, term.mnemonic)
            continue

        try:
            word = InstructionSet.encode(command)
        except Exceptions.UnknownMnemonicError as e:
            raise Exceptions.UnknownMnemonicError(e.field, e.mnemonic, term)
        except Exceptions.AddressOverflowError as e:
            raise Exceptions.AddressOverflowError(e.address, term)

        code.append({"mem_address": len(code), "word": word, "term": term})

    return code


def translate(text):
    """Трансляция текста программы на Hack asm в машинный код.

    Выполняется в 2 прохода:

    1. Расчет адресов меток.

    2. Выделение адресов переменным, кодирование инструкций.
    """
    terms = read_terms(text)

    symbols = translate_stage_1(terms, SymbolTable())
    code = translate_stage_2(terms, symbols)

    return symbols, code


def main(source, target):
    """Функция запуска транслятора. Параметры -- исходный и целевой файлы."""
    with open(source, encoding="utf-8") as f:
        source_text = f.read()

    symbols, code = translate(source_text)

    HackCodeFile.write(target, code)

    logging.debug("Метки: %s", symbols.labels())
    logging.debug("Переменные: %s", symbols.variables())
    logging.debug("%s", HackCodeFile.code_to_debug(code))
    logging.info("Записано %d инструкций в %s", len(code), target)

    return code


if __name__ == "__main__":
    logging.getLogger().setLevel(logging.INFO)

    if len(sys.argv) != 3:
        print("Wrong arguments: translator.py <input_file> <target_file>", file=sys.stderr)
        sys.exit(1)

    _, source, target = sys.argv

    try:
        main(source, target)
    except (Exceptions.TranslationError, OSError, UnicodeDecodeError) as e:
        logging.error("%s", e)
        sys.exit(2)
