import pytest
import xml.etree.ElementTree as ET
from unittest.mock import AsyncMock, MagicMock
from enacit4r_s3site.models.config import SiteConfig, SiteConfigError
from enacit4r_s3site.models.site import S3Object
from enacit4r_s3site.services.s3 import S3Service, S3Error
from enacit4r_s3site.services.site import SiteWriter, generate_site, human_size
from enacit4r_s3site.utils.nodes import SiteTreeBuilder

SITEMAP_NS = "{http://www.sitemaps.org/schemas/sitemap/0.9}"


def make_tree(config, keys):
    return SiteTreeBuilder(config).add_keys(keys).build()


@pytest.fixture
def config(tmp_path):
    """Create a site configuration writing in a temporary directory."""
    return SiteConfig(bucket="test-bucket", region="eu-west-1", output=str(tmp_path), footer="Hosted by ENAC-IT4R")


@pytest.fixture
def mock_s3_service():
    """Create a mock S3Service instance."""
    service = MagicMock(spec=S3Service)
    service.list_objects = AsyncMock(return_value=[])
    return service


class TestSiteWriter:
    """Test suite for SiteWriter."""

    def test_sort_items_folders_first(self, config):
        """Test folders are listed before files, then by name."""
        tree = make_tree(config, ["z.txt", "a/b.txt", "m.txt"])
        items = SiteWriter(config).sort_items(tree.root)
        assert [item.file_name for item in items] == ["a", "m.txt", "z.txt"]

    def test_sort_items_mixed_case(self, config):
        """Test names are sorted regardless of their case."""
        tree = make_tree(config, ["Zebra.txt", "apple.txt", "Banana.txt", "cherry.txt", "docs/a.txt", "Archive/b.txt"])
        items = SiteWriter(config).sort_items(tree.root)
        assert [item.file_name for item in items] == ["Archive", "docs", "apple.txt", "Banana.txt", "cherry.txt", "Zebra.txt"]

    def test_sort_items_hidden_files_excluded(self, config):
        """Test hidden files are not listed by default."""
        tree = make_tree(config, [".env", "readme.md", ".config/app.json"])
        items = SiteWriter(config).sort_items(tree.root)
        assert [item.file_name for item in items] == [".config", "readme.md"]

    def test_sort_items_hidden_files_included(self, tmp_path):
        """Test hidden files are listed when requested."""
        config = SiteConfig(bucket="test-bucket", output=str(tmp_path), include_hidden_files=True)
        tree = make_tree(config, [".env", "readme.md"])
        items = SiteWriter(config).sort_items(tree.root)
        assert [item.file_name for item in items] == [".env", "readme.md"]

    def test_render_root_page(self, config):
        """Test the root page lists its children."""
        tree = make_tree(config, ["docs/readme.md", ".env"])
        html = SiteWriter(config).render_page(tree.root)
        assert "<title>test-bucket - </title>" in html
        assert 'href="/docs"' in html
        assert "readme.md" not in html
        assert ".env" not in html
        assert 'href="/public/style.css"' in html
        assert "Hosted by ENAC-IT4R" in html

    def test_render_folder_page(self, config):
        """Test a folder page links to its parent and files."""
        tree = make_tree(config, ["docs/guide/intro.md"])
        guide = [node for node in tree.nodes if node.key == "docs/guide"][0]
        html = SiteWriter(config).render_page(guide)
        assert "<title>test-bucket - guide</title>" in html
        assert '<a href="/docs">..</a>' in html
        assert 'href="https://test-bucket.s3-eu-west-1.amazonaws.com/docs/guide/intro.md"' in html

    def test_render_escapes_names(self, config):
        """Test object names are escaped in pages."""
        tree = make_tree(config, ["<script>.txt"])
        html = SiteWriter(config).render_page(tree.root)
        assert "&lt;script&gt;.txt" in html
        assert "<script>.txt" not in html

    @pytest.mark.asyncio
    async def test_write_site(self, config, tmp_path):
        """Test one page per folder is written, with the assets."""
        tree = make_tree(config, ["docs/readme.md", "docs/guide/intro.md", "index.txt"])
        locations = await SiteWriter(config).write_site(tree)

        assert (tmp_path / "index.html").is_file()
        assert (tmp_path / "docs" / "index.html").is_file()
        assert (tmp_path / "docs" / "guide" / "index.html").is_file()
        assert not (tmp_path / "index.txt").exists()
        assert (tmp_path / "public" / "style.css").is_file()
        assert not (tmp_path / "sitemap.xml").exists()
        assert sorted(locations) == ["", "docs", "docs/guide"]

    @pytest.mark.asyncio
    async def test_write_site_twice(self, config, tmp_path):
        """Test writing over an existing output."""
        tree = make_tree(config, ["docs/readme.md"])
        writer = SiteWriter(config)
        await writer.write_site(tree)
        await writer.write_site(tree)
        assert (tmp_path / "docs" / "index.html").is_file()

    @pytest.mark.asyncio
    async def test_write_site_with_sitemap(self, tmp_path):
        """Test the sitemap lists the pages in order."""
        config = SiteConfig(bucket="test-bucket", output=str(tmp_path), include_sitemap=True,
                            domain="https://example.com/", root_path="/files/")
        tree = make_tree(config, ["zeta/a.txt", "docs/readme.md", "alpha/b/c.txt"])
        await SiteWriter(config).write_site(tree)

        content = (tmp_path / "sitemap.xml").read_text(encoding="utf-8")
        assert content.startswith('<?xml version="1.0" encoding="UTF-8" standalone="no"?>')
        root = ET.fromstring(content.split("\n", 1)[1])
        assert root.tag == f"{SITEMAP_NS}urlset"
        locs = [loc.text for loc in root.iter(f"{SITEMAP_NS}loc")]
        assert locs == [
            "https://example.com/files",
            "https://example.com/files/alpha",
            "https://example.com/files/alpha/b",
            "https://example.com/files/docs",
            "https://example.com/files/zeta",
        ]

    def test_build_sitemap_deduplicates(self, config):
        """Test a location is listed once."""
        xml = SiteWriter(config).build_sitemap(["https://example.com/b", "https://example.com/a", "https://example.com/b"])
        assert xml.count("<loc>https://example.com/b</loc>") == 1
        assert xml.index("https://example.com/a") < xml.index("https://example.com/b")
        assert 'xmlns:xhtml="http://www.w3.org/1999/xhtml"' in xml

    @pytest.mark.asyncio
    async def test_write_page_outside_output(self, config):
        """Test keys pointing outside the output directory are rejected."""
        tree = make_tree(config, ["../../evil/x.txt"])
        with pytest.raises(ValueError):
            await SiteWriter(config).write_pages(tree)

    @pytest.mark.asyncio
    async def test_write_page_relative_segments(self, config):
        """Test keys with relative segments cannot overwrite another page."""
        tree = make_tree(config, ["readme.md", "a/../b.txt"])
        with pytest.raises(ValueError) as exc_info:
            await SiteWriter(config).write_pages(tree)
        assert "relative segments" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_write_page_current_dir_segment(self, config):
        """Test keys with a current directory segment are rejected."""
        tree = make_tree(config, ["./docs/readme.md"])
        with pytest.raises(ValueError):
            await SiteWriter(config).write_pages(tree)


class TestHumanSize:
    """Test suite for human_size."""

    def test_sizes(self):
        """Test sizes are formatted with binary units."""
        assert human_size(None) == ""
        assert human_size(0) == "0 B"
        assert human_size(1023) == "1023 B"
        assert human_size(2048) == "2.0 KiB"
        assert human_size(5 * 1024 * 1024) == "5.0 MiB"


class TestGenerateSite:
    """Test suite for generate_site."""

    @pytest.mark.asyncio
    async def test_generate_site(self, config, mock_s3_service, tmp_path):
        """Test the bucket listing is written as a site."""
        mock_s3_service.list_objects.return_value = [S3Object(key="docs/readme.md", size=10)]

        tree = await generate_site(config, s3_service=mock_s3_service)

        assert [child.key for child in tree.root.children] == ["docs"]
        root_page = (tmp_path / "index.html").read_text(encoding="utf-8")
        assert 'href="/docs"' in root_page
        assert "readme.md" not in root_page
        docs_page = (tmp_path / "docs" / "index.html").read_text(encoding="utf-8")
        assert "readme.md" in docs_page
        assert "10 B" in docs_page

    @pytest.mark.asyncio
    async def test_generate_empty_bucket(self, config, mock_s3_service, tmp_path):
        """Test an empty bucket makes a single empty page."""
        tree = await generate_site(config, s3_service=mock_s3_service)

        assert tree.root.children == []
        assert "This folder is empty." in (tmp_path / "index.html").read_text(encoding="utf-8")

    @pytest.mark.asyncio
    async def test_generate_site_sitemap_without_domain(self, mock_s3_service, tmp_path):
        """Test nothing is listed nor written when the domain is missing."""
        config = SiteConfig(bucket="test-bucket", output=str(tmp_path), include_sitemap=True)

        with pytest.raises(SiteConfigError):
            await generate_site(config, s3_service=mock_s3_service)

        mock_s3_service.list_objects.assert_not_awaited()
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_generate_site_listing_error(self, config, mock_s3_service, tmp_path):
        """Test a listing error stops the run."""
        mock_s3_service.list_objects.side_effect = S3Error("Access denied")

        with pytest.raises(S3Error):
            await generate_site(config, s3_service=mock_s3_service)

        assert list(tmp_path.iterdir()) == []
