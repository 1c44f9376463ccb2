import unittest
from sdlgen.Span import Span
from sdlgen.ParseError import ParseError

class SpanTest(unittest.TestCase):

  def test_joinWithOwnEndsCoversOriginalRange(self):
    span = Span.inline('hello world').slice(2, 7)
    joined = span.join(span.start()).join(span.end())
    self.assertEqual(span.startIndex, joined.startIndex)
    self.assertEqual(span.endIndex, joined.endIndex)
    self.assertEqual('llo w', joined.getString())

  def test_splitAtAndJoin(self):
    span = Span.inline('hello world')
    (left, right) = span.splitAt(5)
    self.assertEqual('hello', left.getString())
    self.assertEqual(' world', right.getString())
    self.assertEqual('hello world', left.join(right).getString())

  def test_sliceOfSliceRecoversSubstring(self):
    span = Span.inline('int SDL_Init(void);')
    inner = span.slice(4, 12)
    self.assertEqual('SDL_Init', inner.getString())
    self.assertEqual('Init', inner.slice(4).getString())
    self.assertEqual(span.startIndex + 8, inner.slice(4).startIndex)

  def test_trimWscStartIsIdempotent(self):
    for string in ['  /* a */  /* b */x', '/**/ y', 'z', '   ', '\\\n  int']:
      once = Span.inline(string).trimWscStart()
      twice = once.trimWscStart()
      self.assertEqual(once.getString(), twice.getString())
      self.assertEqual(once.startIndex, twice.startIndex)

  def test_docCommentsAreNotTrimmed(self):
    span = Span.inline('  /* plain */ /** doc */ int x;')
    self.assertEqual('/** doc */ int x;', span.trimWscStart().getString())
    span = Span.inline('int x; /**< trailing */  ')
    self.assertEqual('int x; /**< trailing */', span.trimWscEnd().getString())

  def test_trimWscEndSkipsPlainComments(self):
    span = Span.inline('int x; /* c */  ')
    self.assertEqual('int x;', span.trimWscEnd().getString())

  def test_unterminatedBlockComment(self):
    with self.assertRaises(ParseError) as context:
      Span.inline('  /* never closed').trimWscStart()
    self.assertEqual('unterminated block comment', context.exception.getMessage())

  def test_lineAndColumn(self):
    span = Span.inline('ab\ncd').slice(4, 5)
    (line, column, lineStart) = span.getLineAndColumn()
    self.assertEqual(2, line)
    self.assertEqual(2, column)
    self.assertEqual(3, lineStart)

  def test_equalityIsByText(self):
    self.assertEqual(Span.inline('abc'), Span.fromString('other.h', 'xabc').slice(1))
    self.assertEqual(Span.inline('abc'), 'abc')

if __name__ == '__main__':
  unittest.main()
