import io, os, sys, tempfile, unittest
from unittest import mock
from sdlgen.Span import Span
from sdlgen.ParseError import ParseError
from sdlgen.Driver import Driver, moduleName, isSkippedModule, readSource, parseSource
from sdlgen.ItemPrinter import ItemPrettyPrintable
from sdlgen.Main import Cli

HEADERS = {
  'SDL_good.h': 'typedef int SDL_Good;\n',
  'SDL_bad.h': '#ifdef X\n',
  'SDL_err.h': '#error nope\n',
  'SDL_endian.h': 'garbage that is never parsed\n',
  'SDL_main_impl.h': 'garbage that is never parsed\n',
  'SDL_test_x.h': 'garbage that is never parsed\n',
  'readme.txt': 'not a header\n',
  'sdl_Other.H': '#define OTHER 1\n'
}

class DriverTest(unittest.TestCase):

  def setUp(self):
    self.directory = tempfile.TemporaryDirectory()
    self.path = self.directory.name
    for (filename, contents) in HEADERS.items():
      with open(os.path.join(self.path, filename), 'w') as fp:
        fp.write(contents)

  def tearDown(self):
    self.directory.cleanup()

  def test_moduleName(self):
    self.assertEqual('video', moduleName('SDL_video.h'))
    self.assertEqual('other', moduleName('sdl_Other.H'))
    self.assertIsNone(moduleName('readme.txt'))
    self.assertIsNone(moduleName('video.h'))

  def test_isSkippedModule(self):
    self.assertTrue(isSkippedModule('endian'))
    self.assertTrue(isSkippedModule('main_impl'))
    self.assertTrue(isSkippedModule('opengl_glext'))
    self.assertTrue(isSkippedModule('test_x'))
    self.assertFalse(isSkippedModule('video'))

  def test_findHeaders(self):
    headers = Driver().findHeaders(self.path)
    self.assertEqual(['bad', 'err', 'good', 'other'], list(headers.keys()))
    self.assertEqual(os.path.join(self.path, 'SDL_good.h'), headers['good'])
    self.assertEqual(['good'], list(Driver().findHeaders(self.path, ['good']).keys()))

  def test_parseDirectory(self):
    (parsed, failures) = Driver().parseDirectory(self.path)
    self.assertEqual(['err', 'good', 'other'], list(parsed.keys()))
    self.assertEqual(['bad'], [module for (module, error) in failures])
    self.assertIsInstance(failures[0][1], ParseError)
    self.assertEqual('unterminated #if', failures[0][1].getMessage())

  def test_emitAndWrite(self):
    driver = Driver()
    (parsed, failures) = driver.parseDirectory(self.path)
    (outputs, failures) = driver.emitModules(parsed)
    self.assertEqual(['err'], [module for (module, error) in failures])
    self.assertEqual(['good', 'other'], list(outputs.keys()))
    with tempfile.TemporaryDirectory() as out:
      target = os.path.join(out, 'nested')
      paths = driver.writeModules(outputs, target)
      self.assertEqual([os.path.join(target, 'good.rs'), os.path.join(target, 'other.rs')], paths)
      with open(paths[0]) as fp:
        self.assertEqual('pub type SDL_Good = ::core::ffi::c_int;\n', fp.read())

  def test_writeMetadata(self):
    driver = Driver()
    parsed = {'hints': parseSource('hints', Span.fromString('SDL_hints.h', '#define SDL_HINT_X "X"\n'))}
    (outputs, failures) = driver.emitModules(parsed)
    self.assertEqual([], failures)
    with tempfile.TemporaryDirectory() as out:
      paths = driver.writeMetadata(out)
      self.assertEqual([os.path.join(out, 'metadata', 'hints.rs'), os.path.join(out, 'metadata', 'mod.rs')], paths)
      with open(paths[0]) as fp:
        self.assertIn('    value: crate::hints::SDL_HINT_X,\n', fp.read())
      with open(paths[1]) as fp:
        index = fp.read()
      self.assertIn('pub mod hints;\n', index)
      self.assertIn('pub const HINTS: &[&Hint] = &[\n    &hints::METADATA_SDL_HINT_X,\n];', index)

  def test_failedModuleHasNoMetadata(self):
    driver = Driver()
    (parsed, failures) = driver.parseDirectory(self.path)
    driver.emitModules(parsed)
    self.assertEqual(['good', 'other'], list(driver.metadata.keys()))

  def test_readSource(self):
    span = readSource(os.path.join(self.path, 'SDL_good.h'))
    self.assertEqual('SDL_good.h', span.getSource().getResource())
    self.assertEqual('typedef int SDL_Good;\n', span.getString())

  def test_generateCommand(self):
    out = os.path.join(self.path, 'out')
    argv = ['sdlgen', 'generate', self.path, '-o', out]
    with mock.patch.object(sys, 'argv', argv), mock.patch.object(sys, 'stderr', io.StringIO()) as stderr:
      with self.assertRaises(SystemExit) as context:
        Cli()
    self.assertEqual(-1, context.exception.code)
    self.assertIn('unterminated #if', stderr.getvalue())
    self.assertIn('#error nope', stderr.getvalue())
    self.assertTrue(os.path.isfile(os.path.join(out, 'good.rs')))
    self.assertFalse(os.path.exists(os.path.join(out, 'err.rs')))
    self.assertTrue(os.path.isfile(os.path.join(out, 'metadata', 'mod.rs')))

  def test_parseCommandForOneModule(self):
    argv = ['sdlgen', 'parse', self.path, '-m', 'good']
    with mock.patch.object(sys, 'argv', argv), mock.patch.object(sys, 'stderr', io.StringIO()):
      Cli()

class ItemPrinterTest(unittest.TestCase):

  def test_dump(self):
    items = parseSource('test', Span.fromString('SDL_test.h', '#define A 1\n'))
    string = str(ItemPrettyPrintable(items))
    self.assertIn('(Define:', string)
    self.assertIn("ident='A'", string)

if __name__ == '__main__':
  unittest.main()
