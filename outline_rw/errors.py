class ParseError(Exception):
    """
    Base of every error raised while reading or rebuilding an outline.
    """

    def __init__(self, message, value=None):
        super().__init__(message)
        self.value = value


class InvalidChildLevel(ParseError):
    def __init__(self, parent_level: int, child_level: int):
        super().__init__(
            "Cannot add a child of level {} to a node of level {}".format(
                child_level, parent_level
            ),
            child_level,
        )
        self.parent_level = parent_level
        self.child_level = child_level


class InvalidProperty(ParseError):
    def __init__(self, line: str):
        super().__init__("Property line has no key/value separator: {!r}".format(line), line)


class InvalidTags(ParseError):
    def __init__(self, value: str):
        super().__init__("Tags must be written as `:tag1:tag2:`, found {!r}".format(value), value)


class PlanningRepeat(ParseError):
    def __init__(self, keyword: str):
        super().__init__("Planning keyword {} found twice on the same node".format(keyword), keyword)


class IdParseFailed(ParseError):
    def __init__(self, value: str):
        super().__init__("Could not parse ID: {!r}".format(value), value)


class YamlFrontmatterParseFailed(ParseError):
    pass


class TomlFrontmatterParseFailed(ParseError):
    pass


class IncompleteAttributes(ParseError):
    def __init__(self, fence: str):
        super().__init__("Frontmatter opened with {} was never closed".format(fence), fence)


class IncompleteProperties(ParseError):
    def __init__(self, opener: str):
        super().__init__("Property drawer opened with {} was never closed".format(opener), opener)


class RootTitleNotString(ParseError):
    def __init__(self, value):
        super().__init__("Document title must be a string, found {!r}".format(value), value)


class RootTagsNotStringList(ParseError):
    def __init__(self, value):
        super().__init__("Document tags must be a list of strings, found {!r}".format(value), value)


class TimestampParseError(ParseError):
    """
    Base of the errors raised when a timestamp literal is malformed.
    """
    pass


class TooShort(TimestampParseError):
    def __init__(self, value):
        super().__init__("Timestamp too short: {!r}".format(value), value)


class InvalidStartEnd(TimestampParseError):
    def __init__(self, value):
        super().__init__("Timestamp must be enclosed in <> or []: {!r}".format(value), value)


class NotAscii(TimestampParseError):
    def __init__(self, value):
        super().__init__("Timestamp contains non-ASCII characters: {!r}".format(value), value)


class InvalidDate(TimestampParseError):
    def __init__(self, value):
        super().__init__("Date must have the form YYYY-MM-DD: {!r}".format(value), value)


class InvalidYear(TimestampParseError):
    def __init__(self, value):
        super().__init__("Invalid year: {!r}".format(value), value)


class InvalidMonth(TimestampParseError):
    def __init__(self, value):
        super().__init__("Invalid month: {!r}".format(value), value)


class InvalidDay(TimestampParseError):
    def __init__(self, value):
        super().__init__("Invalid day: {!r}".format(value), value)


class InvalidDateComponents(TimestampParseError):
    def __init__(self, year, month, day):
        super().__init__(
            "No such calendar date: {:04}-{:02}-{:02}".format(year, month, day),
            (year, month, day),
        )


class RangeInRange(TimestampParseError):
    def __init__(self, value):
        super().__init__("Range timestamps cannot contain ranges: {!r}".format(value), value)


class BadCharacter(TimestampParseError):
    def __init__(self, char, value=None):
        super().__init__("Unexpected character {!r} in timestamp {!r}".format(char, value), char)


class DayNameTooLong(TimestampParseError):
    def __init__(self, value):
        super().__init__("Day name longer than three letters in {!r}".format(value), value)


class BadRepeaterUnit(TimestampParseError):
    def __init__(self, unit):
        super().__init__("Repeater unit must be one of d, w, m, y, found {!r}".format(unit), unit)


class InvalidRepeaterCount(TimestampParseError):
    def __init__(self, count):
        super().__init__("Repeater count must be a positive integer, found {!r}".format(count), count)


class InvalidTime(TimestampParseError):
    def __init__(self, value):
        super().__init__("Invalid time of day: {!r}".format(value), value)
