from lookprice.models.store import Store
from lookprice.models.product import Product
from lookprice.models.scan_log import ScanLog
from lookprice.models.user import User
from lookprice.models.lead import Lead
