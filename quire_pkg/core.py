import os
import shutil
import logging
import time
from enum import Enum
from typing import Dict, Iterator, List, Optional

from .document import Document, DocumentMetadata, TextContent
from .errors import (
    FieldError,
    GeneratorError,
    CopyError,
    OutputError,
    QuireError,
    ReaderError,
    SettingsError,
)
from .generators import Generator, IndexGenerator
from .metadata import FieldCoercer
from .paths import document_url, is_public, relative_url, url_to_path
from .readers import MarkdownReader, Reader
from .registry import Registry
from .settings import Settings
from .templates import PAGE_TEMPLATE, Templates


def setup_logging(level=logging.INFO, log_file=None):
    """Set up logging configuration for the 'Quire' logger tree."""
    logger = logging.getLogger('Quire')
    logger.setLevel(logging.DEBUG if log_file else level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter('%(message)s'))
    logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(os.path.abspath(log_file))
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    return logger


class Site:
    """Site-wide values handed to every template as ``site``."""

    def __init__(self, title='Untitled website', url='/', language=None):
        self.title = title
        self.url = url if url.endswith('/') else url + '/'
        self.language = language

    @classmethod
    def from_settings(cls, settings):
        return cls(
            title=settings.site_title or 'Untitled website',
            url=settings.site_url or '/',
            language=settings.site_language,
        )

    def to_json(self):
        return {'title': self.title, 'language': self.language, 'url': self.url}


class BuildState(Enum):
    INIT = 'init'
    SETTINGS_VALIDATED = 'settings_validated'
    TEMPLATES_LOADED = 'templates_loaded'
    WALKING = 'walking'
    GENERATORS_RUN = 'generators_run'
    DONE = 'done'


class Compiler:
    """Build a site: walk the source tree, render documents, run generators.

    Files with a registered reader are rendered to ``.html`` and recorded
    in the registry; other files are copied. A failure on one file is
    logged and the file skipped. Invalid settings, an unloadable page
    layout or a failing generator abort the build.
    """

    def __init__(self, settings: Settings, logger: Optional[logging.Logger] = None):
        self.settings = settings
        self.site = Site.from_settings(settings)
        self.logger = logger or logging.getLogger('Quire')
        self.templates = Templates(settings.source_dir)
        self.coercer = FieldCoercer(strict=settings.strict_metadata)
        self.readers: Dict[str, Reader] = {}
        self.generators: List[Generator] = []
        self.registry = Registry()
        self.state = BuildState.INIT

        self.documents_built = 0
        self.files_copied = 0
        self.documents_generated = 0
        self.drafts_skipped = 0
        self.files_skipped = 0

        self.add_reader(MarkdownReader())
        self.add_generator(IndexGenerator())

    def add_reader(self, reader: Reader) -> None:
        for extension in reader.extensions:
            self.readers[extension.lower()] = reader

    def add_generator(self, generator: Generator) -> None:
        self.generators.append(generator)

    def get_reader(self, path: str) -> Optional[Reader]:
        extension = os.path.splitext(path)[1][1:].lower()
        return self.readers.get(extension) if extension else None

    def check_settings(self):
        source_dir = self.settings.source_dir
        output_dir = self.settings.output_dir

        if not os.path.isdir(source_dir):
            raise SettingsError(f"{source_dir} must be an existing directory")

        if os.path.exists(output_dir) and not os.path.isdir(output_dir):
            raise SettingsError(f"{output_dir} must be a directory")

        if os.path.realpath(source_dir) == os.path.realpath(output_dir):
            raise SettingsError(f"{output_dir} must not be the source directory")

        self.state = BuildState.SETTINGS_VALIDATED

    def load_templates(self):
        self.templates.load()
        self.state = BuildState.TEMPLATES_LOADED

    def walk(self) -> Iterator[str]:
        """Yield public source files, skipping the output directory."""
        source_dir = self.settings.source_dir
        output_real = os.path.realpath(self.settings.output_dir)
        max_depth = self.settings.max_depth
        follow_links = self.settings.follow_links
        visited = set()

        for root, dirs, files in os.walk(source_dir, followlinks=follow_links):
            if follow_links:
                stat = os.stat(root)
                identity = (stat.st_dev, stat.st_ino)
                if identity in visited:
                    self.logger.warning(f"Skipping {root}: symbolic link loop")
                    dirs[:] = []
                    continue
                visited.add(identity)

            rel_root = os.path.relpath(root, source_dir)
            depth = 0 if rel_root == os.curdir else len(rel_root.split(os.sep))

            if max_depth is not None and depth + 1 >= max_depth:
                dirs[:] = []
            else:
                dirs[:] = sorted(
                    d for d in dirs
                    if is_public(d) and os.path.realpath(os.path.join(root, d)) != output_real
                )

            if max_depth is not None and depth + 1 > max_depth:
                continue
            for filename in sorted(files):
                if is_public(filename):
                    yield os.path.join(root, filename)

    def render_document(self, document: Document) -> str:
        """Render a document through the page layout and write it out."""
        context = {'site': self.site.to_json(), 'page': document.to_json()}
        output = self.templates.render(PAGE_TEMPLATE, context)

        dest = url_to_path(document.metadata.url, self.settings.output_dir)
        try:
            os.makedirs(os.path.dirname(dest), exist_ok=True)
            with open(dest, 'w', encoding='utf-8') as output_file:
                output_file.write(output)
        except (IOError, OSError) as e:
            raise OutputError(dest, e)
        return dest

    def build_document(self, reader: Reader, path: str) -> Optional[DocumentMetadata]:
        """Read, render and register one document.

        Returns the registered metadata, or None for a skipped draft.
        """
        body, raw_metadata = reader.load(path)
        url = document_url(path, self.settings.source_dir)
        try:
            metadata = DocumentMetadata.from_raw(raw_metadata.items(), self.coercer).with_url(url)
        except FieldError as e:
            raise ReaderError(path, e)

        if metadata.draft:
            self.logger.info(f"Skipping draft: {path}")
            self.drafts_skipped += 1
            return None

        document = Document(metadata, TextContent(body))
        self.logger.debug(f"Rendering document {path} in {url} ...")
        self.render_document(document)

        previous = self.registry.insert(metadata)
        if previous is not None:
            self.logger.warning(f"{path} replaces a document already built at {url}")
        self.documents_built += 1
        return metadata

    def copy_file(self, path: str) -> str:
        dest = os.path.join(self.settings.output_dir, relative_url(path, self.settings.source_dir))
        try:
            os.makedirs(os.path.dirname(dest), exist_ok=True)
            shutil.copy2(path, dest)
        except (IOError, OSError, shutil.Error) as e:
            raise CopyError(path, dest, e)
        self.logger.debug(f"Copying {path} to {dest}")
        self.files_copied += 1
        return dest

    def process_entry(self, path: str) -> None:
        reader = self.get_reader(path)
        if reader is not None:
            self.build_document(reader, path)
        else:
            self.copy_file(path)

    def run_generators(self):
        """Run every generator once over one snapshot of the registry."""
        documents = self.registry.snapshot()

        for generator in self.generators:
            self.logger.debug(f"Running generator {generator.name}")
            try:
                generated_docs = generator.generate(documents)
            except QuireError:
                raise
            except Exception as e:
                raise GeneratorError(generator.name, e)

            for generated_doc in generated_docs:
                url = generated_doc.metadata.url
                if url in self.registry:
                    self.logger.debug(f"Keeping existing document at {url}")
                    continue
                try:
                    self.render_document(generated_doc)
                except QuireError as e:
                    self.files_skipped += 1
                    self.logger.error(f"Skipping generated {url}: {e}")
                    continue
                self.registry.insert_if_absent(generated_doc.metadata)
                self.documents_generated += 1

        self.state = BuildState.GENERATORS_RUN

    def run(self):
        """Main build process."""
        start_time = time.time()

        self.check_settings()
        self.load_templates()

        self.logger.info(f"Building {self.settings.source_dir} into {self.settings.output_dir} ...")
        try:
            os.makedirs(self.settings.output_dir, exist_ok=True)
        except (IOError, OSError) as e:
            raise OutputError(self.settings.output_dir, e)

        self.state = BuildState.WALKING
        for path in self.walk():
            try:
                self.process_entry(path)
            except QuireError as e:
                self.files_skipped += 1
                self.logger.error(f"Skipping {path}: {e}")
            except Exception as e:
                self.files_skipped += 1
                self.logger.error(f"Unexpected error processing {path}: {e}")

        self.logger.info(f"Running {len(self.generators)} generator(s) over {len(self.registry)} document(s) ...")
        self.run_generators()
        self.state = BuildState.DONE

        total_time = time.time() - start_time
        self.logger.info(f"Site build completed in {total_time:.6f} seconds.")
        self.logger.info(f"Total documents built: {self.documents_built}")
        self.logger.info(f"Total files copied: {self.files_copied}")
        self.logger.info(f"Total index pages generated: {self.documents_generated}")
        if self.drafts_skipped:
            self.logger.info(f"Total drafts skipped: {self.drafts_skipped}")
        if self.files_skipped:
            self.logger.warning(f"Total files skipped: {self.files_skipped}")
        return self.files_skipped == 0
