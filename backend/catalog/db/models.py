"""
SQLAlchemy Table Definitions

The product table name comes from configuration (TABLE_NAME), so the table is
declared with SQLAlchemy Core against a shared MetaData instead of a fixed ORM class.

Layout:
- (product_id, version): composite primary key, one row per product version
- category: secondary index used for category listing
- expires_at: epoch seconds, rows past it are removed by the purge job
"""

from sqlalchemy import BigInteger, Column, Float, Index, Integer, MetaData, String, Table, Text

metadata = MetaData()


def product_table(name: str) -> Table:
    """
    Get the product table declaration for `name`

    Declared once per name and reused afterwards.

    Args:
        name: Table name

    Returns:
        Table: Product table
    """
    if name in metadata.tables:
        return metadata.tables[name]

    return Table(
        name,
        metadata,
        # Partition key
        Column("product_id", String(64), primary_key=True),
        # Sort key, epoch milliseconds
        Column("version", BigInteger, primary_key=True, autoincrement=False),
        Column("name", String(255), nullable=True),
        Column("category", String(255), nullable=True),
        Column("price", Float, nullable=True),
        Column("description", Text, nullable=True),
        Column("stock", Integer, nullable=True),
        Column("created_at", BigInteger, nullable=True),
        Column("updated_at", BigInteger, nullable=True),
        Column("expires_at", BigInteger, nullable=True),
        Index(f"ix_{name}_category", "category", "version"),
    )
