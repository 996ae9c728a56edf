from typing import List, Optional
from pathlib import Path
from jinja2 import Environment, FileSystemLoader, select_autoescape
from ..models.config import SiteConfig
from ..models.site import SiteNode, SiteTree
from ..utils.keys import join_url, strip_slashes
from ..utils.nodes import SiteTreeBuilder, resolve_url
from .s3 import S3Service
import asyncio
import locale
import logging
import shutil
import xml.etree.ElementTree as ET

PACKAGE_PATH = Path(__file__).resolve().parent.parent
TEMPLATES_PATH = PACKAGE_PATH / "templates"
PUBLIC_PATH = PACKAGE_PATH / "public"

INDEX_NAME = "index.html"
PAGE_TEMPLATE = "main.html"
SITEMAP_NAME = "sitemap.xml"
SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
XHTML_NS = "http://www.w3.org/1999/xhtml"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8" standalone="no"?>'


def human_size(size: Optional[int], decimal_places: int = 1) -> str:
    """Format a size in bytes for reading, empty when the size is unknown."""
    if size is None:
        return ""
    value = float(size)
    for unit in ['B', 'KiB', 'MiB', 'GiB', 'TiB', 'PiB']:
        if value < 1024.0 or unit == 'PiB':
            break
        value /= 1024.0
    if unit == 'B':
        return f"{size} B"
    return f"{value:.{decimal_places}f} {unit}"


class SiteWriter:
    """
    This service renders one listing page per folder of a site tree, and optionally
    the sitemap of these pages, in the output directory.
    """

    def __init__(self, config: SiteConfig, templates_path: Path = TEMPLATES_PATH, public_path: Path = PUBLIC_PATH):
        """Initialize the site writer.

        Args:
            config (SiteConfig): The site configuration.
            templates_path (Path, optional): The folder of the page templates.
            public_path (Path, optional): The folder of the static assets to copy along the pages.
        """
        self.config = config
        self.base_path = Path(config.output).resolve()
        self.public_path = Path(public_path)
        self.env = Environment(loader=FileSystemLoader(str(templates_path)),
                               autoescape=select_autoescape(["html", "xml"]))
        self.env.globals.update(strip_slashes=strip_slashes, human_size=human_size)

    def sort_items(self, node: SiteNode) -> List[SiteNode]:
        """Select the children of a folder to be listed, folders first then by name.

        Args:
            node (SiteNode): The folder node.

        Returns:
            List[SiteNode]: The children to list, without hidden files unless they are included.
        """
        items = [child for child in node.children
                 if self.config.include_hidden_files or not child.is_hidden_file]
        return sorted(items, key=lambda child: (child.is_file, locale.strxfrm(child.file_name.casefold()), child.file_name))

    def render_page(self, node: SiteNode) -> str:
        """Render the listing page of a folder.

        Args:
            node (SiteNode): The folder node.

        Returns:
            str: The page markup.
        """
        template = self.env.get_template(PAGE_TEMPLATE)
        parent_url = None if node.is_root else resolve_url(node.key_parts[:-1], True, self.config)
        return template.render(title=f"{self.config.bucket} - {node.file_name}",
                               node=node,
                               items=self.sort_items(node),
                               parent_url=parent_url,
                               public_url="/" + join_url(self.config.root_path, "public"),
                               config=self.config)

    def page_location(self, node: SiteNode) -> str:
        return join_url(self.config.domain, self.config.root_path, node.key)

    async def write_page(self, node: SiteNode) -> str:
        """Render the page of a folder and write it in the matching output directory.

        Args:
            node (SiteNode): The folder node.

        Raises:
            ValueError: When the node key has relative segments or points outside the output directory.

        Returns:
            str: The public location of the page.
        """
        content = self.render_page(node)
        target_dir = self._get_full_path(node)
        target_dir.mkdir(parents=True, exist_ok=True)
        with open(target_dir / INDEX_NAME, "w", encoding="utf-8") as f:
            f.write(content)
        logging.debug(f"Page written : {target_dir / INDEX_NAME}")
        return self.page_location(node)

    async def write_pages(self, tree: SiteTree) -> List[str]:
        """Write the pages of all the folders, the first failure fails them all.

        Args:
            tree (SiteTree): The site tree.

        Returns:
            List[str]: The public locations of the written pages.
        """
        locations = await asyncio.gather(*[self.write_page(node) for node in tree.folders()])
        logging.info(f"{len(locations)} pages written in {self.base_path}")
        return list(locations)

    async def copy_public(self) -> Path:
        """Copy the static assets in the output directory.

        Returns:
            Path: The copied assets directory.
        """
        destination = self.base_path / self.public_path.name
        shutil.copytree(self.public_path, destination, dirs_exist_ok=True)
        logging.info(f"Assets copied in {destination}")
        return destination

    def build_sitemap(self, locations: List[str]) -> str:
        """Make the sitemap document of the given page locations.

        Args:
            locations (List[str]): The page locations, duplicates are ignored.

        Returns:
            str: The XML document, locations in lexicographic order.
        """
        urlset = ET.Element("urlset", {"xmlns": SITEMAP_NS, "xmlns:xhtml": XHTML_NS})
        for location in sorted(set(locations)):
            url = ET.SubElement(urlset, "url")
            ET.SubElement(url, "loc").text = location
        ET.indent(urlset, space="\t")
        return f"{XML_DECLARATION}\n{ET.tostring(urlset, encoding='unicode')}\n"

    async def write_sitemap(self, locations: List[str]) -> Path:
        sitemap_path = self.base_path / SITEMAP_NAME
        with open(sitemap_path, "w", encoding="utf-8") as f:
            f.write(self.build_sitemap(locations))
        logging.info(f"Sitemap written : {sitemap_path}")
        return sitemap_path

    async def write_site(self, tree: SiteTree) -> List[str]:
        """Write the pages and the assets, then the sitemap if it is requested.

        Args:
            tree (SiteTree): The site tree.

        Returns:
            List[str]: The public locations of the written pages.
        """
        self.base_path.mkdir(parents=True, exist_ok=True)
        locations, _ = await asyncio.gather(self.write_pages(tree), self.copy_public())
        if self.config.include_sitemap:
            await self.write_sitemap(locations)
        return locations

    def _get_full_path(self, node: SiteNode) -> Path:
        """Get the output directory of a folder node.

        Args:
            node (SiteNode): The folder node.

        Raises:
            ValueError: When the key has "." or ".." segments, or resolves outside the output directory.

        Returns:
            Path: The full resolved path.
        """
        if any(part in (".", "..") for part in node.key_parts):
            raise ValueError(f"Path {node.key} has relative segments")
        full_path = self.base_path.joinpath(*node.key_parts).resolve()
        if not full_path.is_relative_to(self.base_path):
            raise ValueError(f"Path {node.key} is outside the output path")
        return full_path


async def generate_site(config: SiteConfig, s3_service: S3Service = None, site_writer: SiteWriter = None) -> SiteTree:
    """List the bucket and write its static site.

    Args:
        config (SiteConfig): The site configuration.
        s3_service (S3Service, optional): The listing service. Defaults to one made from the configuration.
        site_writer (SiteWriter, optional): The writer. Defaults to one made from the configuration.

    Raises:
        SiteConfigError: When the configuration is incomplete, before anything is listed or written.
        S3Error: When the bucket cannot be listed.

    Returns:
        SiteTree: The tree of the written site.
    """
    config.check()
    s3_service = s3_service or S3Service(config)
    site_writer = site_writer or SiteWriter(config)
    objects = await s3_service.list_objects()
    tree = SiteTreeBuilder(config).add_objects(objects).build()
    if logging.getLogger().isEnabledFor(logging.DEBUG):
        logging.debug(tree.root.model_dump_json(indent=2))
    await site_writer.write_site(tree)
    return tree
