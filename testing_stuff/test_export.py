import io
import unittest
import xml.etree.ElementTree as ET

from openpyxl import load_workbook

from helpers import AppTestCase


class ExportTests(AppTestCase):

    def setUp(self):
        super().setUp()
        self.register('alice', 'pw1')
        self.storage.insert_item('Widget', sku='W-1', quantity=3, location='Shelf A')
        self.storage.insert_item('Gadget', quantity=7, notes='fragile')

    def test_xml_export(self):
        response = self.client.get('/items/export.xml')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.mimetype, 'application/xml')
        self.assertIn('inventory.xml', response.headers['Content-Disposition'])

        root = ET.fromstring(response.data)
        self.assertEqual(root.tag, 'inventory')
        items = root.findall('item')
        self.assertEqual([item.findtext('name') for item in items], ['Gadget', 'Widget'])
        self.assertEqual(items[1].findtext('sku'), 'W-1')
        self.assertEqual(items[1].findtext('quantity'), '3')
        self.assertEqual(items[0].findtext('sku'), '')

    def test_xlsx_export(self):
        response = self.client.get('/items/export.xlsx')
        self.assertEqual(response.status_code, 200)
        self.assertIn('inventory.xlsx', response.headers['Content-Disposition'])

        ws = load_workbook(io.BytesIO(response.data)).active
        self.assertEqual(ws.title, 'Inventory')
        rows = list(ws.iter_rows(values_only=True))
        self.assertEqual(rows[0][:3], ('Name', 'SKU', 'Quantity'))
        self.assertTrue(ws.cell(row=1, column=1).font.bold)
        self.assertEqual([row[0] for row in rows[1:]], ['Gadget', 'Widget'])
        self.assertEqual(rows[2][2], 3)


    def test_control_characters_are_dropped(self):
        self.client.post('/items/new', data={'name': 'Bell\x1b', 'notes': 'ring\x07 twice\nloud'})

        response = self.client.get('/items/export.xlsx')
        self.assertEqual(response.status_code, 200)
        ws = load_workbook(io.BytesIO(response.data)).active
        self.assertEqual(ws.cell(row=2, column=1).value, 'Bell')
        self.assertEqual(ws.cell(row=2, column=5).value, 'ring twice\nloud')

        response = self.client.get('/items/export.xml')
        self.assertEqual(response.status_code, 200)
        bell = ET.fromstring(response.data).find('item')
        self.assertEqual(bell.findtext('name'), 'Bell')
        self.assertEqual(bell.findtext('notes'), 'ring twice\nloud')


class SQLAlchemyExportTests(ExportTests):
    backend = 'sqlalchemy'


if __name__ == '__main__':
    unittest.main()
