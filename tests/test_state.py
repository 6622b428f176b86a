import asyncio
import os
import random
import tempfile
import unittest
from dataclasses import replace
from types import SimpleNamespace

from db.models import ProductDraft, SellerDraft
from db.storage import Storage
from services.gemini import UNAVAILABLE_TEXT, DescriptionGenerator
from utils import state as state_mod
from utils.state import CART_KEY, SESSION_KEY, PosState


class GatedModels:
    """Fake ``client.aio.models`` that blocks until released."""

    def __init__(self, text="Freshly roasted joy."):
        self.text = text
        self.gate = asyncio.Event()
        self.calls = []

    async def generate_content(self, model, contents):
        self.calls.append(contents)
        await self.gate.wait()
        return SimpleNamespace(text=self.text)


class StateTestCase(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.storage = Storage(os.path.join(self.temp_dir.name, "test.sqlite"))
        self.state = self.make_state()

    def tearDown(self):
        self.temp_dir.cleanup()

    def make_state(self, generator=None) -> PosState:
        if generator is None:
            with self.assertLogs("services.gemini", level="ERROR"):
                generator = DescriptionGenerator(None)
        return PosState.initial(self.storage, generator)

    def product(self, product_id):
        return self.state.find_product(product_id)

    def set_stock(self, product_id, stock):
        self.state.products = [
            replace(p, stock=stock) if p.id == product_id else p
            for p in self.state.products
        ]

    # ---------- Seed data ----------

    def test_initial_state(self):
        s = self.state
        self.assertEqual([p.id for p in s.products], ["p1", "p2", "p3", "p4", "p5", "p6"])
        self.assertEqual(s.cart, [])
        self.assertIsNone(s.current_user)
        self.assertEqual(
            [u.username for u in s.sellers],
            ["jabuitrago", "jleal", "jpineda", "kgonzales"],
        )
        self.assertTrue(all(u.password == "123" for u in s.users))
        self.assertEqual(s.cart_total, 0)
        self.assertEqual(s.cart_item_count, 0)

    # ---------- Auth ----------

    def test_login_success_strips_password(self):
        s = self.state
        self.assertTrue(s.login("mariocas", "123"))
        self.assertEqual(s.current_user.username, "mariocas")
        self.assertEqual(s.current_user.role, "admin")
        self.assertIsNone(s.current_user.password)
        self.assertNotIn("password", s.current_user.to_dict())
        self.assertIsNone(s.login_error)

        # persisted without password
        saved = self.storage.load(SESSION_KEY)
        self.assertEqual(saved["username"], "mariocas")
        self.assertNotIn("password", saved)

        # authoritative list still has it
        self.assertEqual(s.users[0].password, "123")

    def test_login_failure_keeps_previous_session(self):
        s = self.state
        self.assertFalse(s.login("mariocas", "wrong"))
        self.assertIsNone(s.current_user)
        self.assertEqual(s.login_error, state_mod.LOGIN_ERROR)

        s.login("jleal", "123")
        self.assertFalse(s.login("mariocas", "wrong"))
        self.assertEqual(s.current_user.username, "jleal")
        self.assertEqual(s.login_error, state_mod.LOGIN_ERROR)

        # a good login clears the error
        s.login("mariocas", "123")
        self.assertIsNone(s.login_error)

    def test_login_is_exact_match(self):
        self.assertFalse(self.state.login("MARIOCAS", "123"))
        self.assertFalse(self.state.login(" mariocas", "123"))
        self.assertFalse(self.state.login("", ""))

    def test_session_survives_restart_and_logout_removes_it(self):
        self.state.login("kgonzales", "123")
        restarted = self.make_state()
        self.assertEqual(restarted.current_user.username, "kgonzales")
        self.assertIsNone(restarted.current_user.password)

        restarted.logout()
        self.assertIsNone(restarted.current_user)
        self.assertIsNone(self.storage.load(SESSION_KEY))
        self.assertIsNone(self.make_state().current_user)

        # logout with nobody logged in is fine
        restarted.logout()
        self.assertIsNone(restarted.current_user)

    # ---------- Cart ----------

    def test_add_to_cart_snapshots_product(self):
        s = self.state
        s.add_to_cart(self.product("p1"))
        s.add_to_cart(self.product("p1"))
        s.add_to_cart(self.product("p3"))

        self.assertEqual([(i.product_id, i.quantity) for i in s.cart], [("p1", 2), ("p3", 1)])
        self.assertEqual(s.cart[0].name, "Café Colombiano")
        self.assertEqual(s.cart_item_count, 3)
        self.assertAlmostEqual(s.cart_total, 15.50 * 2 + 8.75)

        # later catalog edits do not reach the cart line
        s.products = [replace(p, price=99.0) for p in s.products]
        s.add_to_cart(self.product("p1"))
        self.assertEqual(s.cart[0].price, 15.50)

    def test_add_to_cart_out_of_stock_is_noop(self):
        s = self.state
        for stock in (0, -3):
            self.set_stock("p2", stock)
            s.add_to_cart(self.product("p2"))
            self.assertEqual(s.cart, [])
        self.assertIsNone(self.storage.load(CART_KEY))

        s.add_to_cart(self.product("p1"))
        before = list(s.cart)
        s.add_to_cart(self.product("p2"))
        self.assertEqual(s.cart, before)

    def test_update_quantity(self):
        s = self.state
        s.add_to_cart(self.product("p4"))
        s.update_quantity("p4", 4)
        self.assertEqual(s.cart[0].quantity, 5)
        s.update_quantity("p4", -2)
        self.assertEqual(s.cart[0].quantity, 3)

        # unknown id
        s.update_quantity("nope", 1)
        self.assertEqual(len(s.cart), 1)

        # dropping to zero or below removes the line
        s.update_quantity("p4", -3)
        self.assertEqual(s.cart, [])
        s.add_to_cart(self.product("p4"))
        s.update_quantity("p4", -10)
        self.assertEqual(s.cart, [])
        self.assertEqual(self.storage.load(CART_KEY), [])

    def test_random_cart_commands_keep_invariants(self):
        s = self.state
        rng = random.Random(20261019)
        self.set_stock("p6", 0)
        ids = [p.id for p in s.products] + ["missing"]

        for _ in range(200):
            if rng.random() < 0.55:
                s.add_to_cart(rng.choice(s.products))
            else:
                s.update_quantity(rng.choice(ids), rng.choice([-3, -1, 1, 2]))

            self.assertTrue(all(item.quantity >= 1 for item in s.cart))
            self.assertEqual(len({i.product_id for i in s.cart}), len(s.cart))
            self.assertNotIn("p6", {i.product_id for i in s.cart})
            self.assertAlmostEqual(
                s.cart_total, sum(i.price * i.quantity for i in s.cart)
            )
            self.assertEqual(s.cart_item_count, sum(i.quantity for i in s.cart))

        # what was persisted is what a restart sees
        self.assertEqual(self.make_state().cart, s.cart)

    # ---------- Checkout ----------

    def test_checkout_decrements_stock_unclamped(self):
        s = self.state
        self.set_stock("p1", 5)
        for _ in range(7):
            s.add_to_cart(self.product("p1"))
        s.add_to_cart(self.product("p2"))
        s.update_quantity("p2", 2)

        total = s.checkout()

        self.assertAlmostEqual(total, 7 * 15.50 + 3 * 120.00)
        self.assertEqual(s.cart, [])
        self.assertEqual(self.product("p1").stock, -2)
        self.assertEqual(self.product("p2").stock, 22)
        self.assertEqual(self.product("p3").stock, 100)
        self.assertEqual(self.storage.load(CART_KEY), [])

    def test_checkout_empty_cart_is_noop(self):
        stock_before = [p.stock for p in self.state.products]
        self.assertIsNone(self.state.checkout())

        self.state.add_to_cart(self.product("p5"))
        self.assertIsNotNone(self.state.checkout())
        # second checkout on the cleared cart
        self.assertIsNone(self.state.checkout())
        self.assertEqual(self.product("p5").stock, stock_before[4] - 1)

    # ---------- Add product ----------

    def test_add_product_validation(self):
        s = self.state
        base = ProductDraft(name="Taza", price=0.01, stock=0, image_url="http://img")
        invalid = [
            replace(base, price=0),
            replace(base, price=None),
            replace(base, price=-1),
            replace(base, price=float("nan")),
            replace(base, price=float("inf")),
            replace(base, stock=float("inf")),
            replace(base, stock=-1),
            replace(base, stock=None),
            replace(base, name="   "),
            replace(base, image_url=""),
        ]
        for draft in invalid:
            self.assertIsNone(s.add_product(draft), draft)
        self.assertEqual(len(s.products), 6)

        product = s.add_product(base)
        self.assertIsNotNone(product)
        self.assertEqual(s.products[0], product)
        self.assertEqual(product.price, 0.01)
        self.assertEqual(product.stock, 0)

    def test_add_product_from_form_buffer(self):
        s = self.state
        s.open_add_product()
        s.set_product_field("name", "Termo")
        s.set_product_field("price", "0")
        s.set_product_field("stock", "10")
        s.set_product_field("image_url", "https://picsum.photos/id/1/400/300")
        self.assertFalse(s.is_new_product_form_valid)
        self.assertIsNone(s.add_product())
        self.assertTrue(s.is_add_product_open)

        s.set_product_field("price", "abc")
        self.assertIsNone(s.new_product.price)
        for text in ("inf", "nan", "9" * 400):
            s.set_product_field("price", text)
            self.assertIsNone(s.new_product.price, text)
            self.assertFalse(s.is_new_product_form_valid)
        s.set_product_field("price", "12.5")
        self.assertTrue(s.is_new_product_form_valid)

        product = s.add_product()
        self.assertEqual(product.name, "Termo")
        self.assertEqual(product.stock, 10)
        self.assertEqual(s.products[0].id, product.id)
        # buffer reset and panel closed
        self.assertEqual(s.new_product, ProductDraft())
        self.assertFalse(s.is_add_product_open)

        with self.assertRaises(ValueError):
            s.set_product_field("colour", "red")

    def test_add_product_stock_must_be_a_whole_number(self):
        s = self.state
        s.set_product_field("name", "Termo")
        s.set_product_field("price", "12.5")
        s.set_product_field("image_url", "u")

        for text in ("2.5", "abc", "1e3"):
            s.set_product_field("stock", text)
            self.assertIsNone(s.new_product.stock, text)

        # parses as an int but is too large to count as a number
        s.set_product_field("stock", "9" * 400)
        self.assertEqual(s.new_product.stock, int("9" * 400))
        self.assertFalse(s.is_new_product_form_valid)
        self.assertIsNone(s.add_product())

        s.set_product_field("stock", " 7 ")
        self.assertEqual(s.add_product().stock, 7)

    def test_add_product_ids_unique_under_rapid_calls(self):
        draft = ProductDraft(name="Lápiz", price=1, stock=1, image_url="u")
        ids = [self.state.add_product(draft).id for _ in range(100)]
        self.assertEqual(len(set(ids)), 100)
        self.assertTrue(all(i.startswith("p") for i in ids))
        # newest first
        self.assertEqual([p.id for p in self.state.products[:3]], ids[::-1][:3])

    def test_close_add_product_resets_draft(self):
        s = self.state
        s.open_add_product()
        s.set_product_field("name", "Half typed")
        s.close_add_product()
        self.assertFalse(s.is_add_product_open)
        self.assertEqual(s.new_product, ProductDraft())

    # ---------- Sellers ----------

    def test_add_seller_duplicate_case_insensitive(self):
        s = self.state
        users_before = list(s.users)
        self.assertIsNone(s.add_seller(SellerDraft(name="Otro", username="JABUITRAGO")))
        self.assertEqual(s.users, users_before)
        self.assertEqual(s.add_seller_error, state_mod.DUPLICATE_USERNAME_ERROR)

        # also against the admin account
        self.assertIsNone(s.add_seller(SellerDraft(name="X", username="MarioCas")))

        # editing the form clears the error
        s.set_seller_field("username", "jabuitrago2")
        self.assertIsNone(s.add_seller_error)

    def test_add_seller_success(self):
        s = self.state
        s.open_manage_sellers()
        s.set_seller_field("name", "Ana Ruiz")
        s.set_seller_field("username", "aruiz")
        self.assertTrue(s.is_new_seller_form_valid)

        seller = s.add_seller()
        self.assertEqual(seller.role, "seller")
        self.assertEqual(seller.password, "123")
        self.assertEqual(s.users[-1], seller)
        self.assertEqual(len(s.sellers), 5)
        self.assertEqual(s.new_seller, SellerDraft())
        self.assertIsNone(s.add_seller_error)

        # the new seller can log in with the default password
        self.assertTrue(s.login("aruiz", "123"))

    def test_add_seller_blank_fields_rejected_silently(self):
        s = self.state
        for draft in (SellerDraft("  ", "user"), SellerDraft("Name", " "), SellerDraft()):
            self.assertIsNone(s.add_seller(draft))
        self.assertIsNone(s.add_seller_error)
        self.assertEqual(len(s.users), 5)

    def test_open_manage_sellers_clears_error(self):
        s = self.state
        s.add_seller(SellerDraft("Dup", "jleal"))
        self.assertIsNotNone(s.add_seller_error)
        s.open_manage_sellers()
        self.assertIsNone(s.add_seller_error)
        self.assertTrue(s.is_manage_sellers_open)
        s.close_manage_sellers()
        self.assertFalse(s.is_manage_sellers_open)

    def test_delete_seller(self):
        s = self.state
        s.delete_seller("jleal")
        self.assertNotIn("jleal", [u.username for u in s.users])
        self.assertEqual(len(s.sellers), 3)

        # missing and case-mismatched names are no-ops
        s.delete_seller("jleal")
        s.delete_seller("JPINEDA")
        self.assertEqual(len(s.users), 4)

        # no role check in the command itself
        s.delete_seller("mariocas")
        self.assertNotIn("mariocas", [u.username for u in s.users])

    # ---------- Corrupted snapshots ----------

    def _write_raw(self, key, raw):
        with self.storage.connect() as conn:
            conn.execute("INSERT OR REPLACE INTO kv(key, value) VALUES (?, ?);", (key, raw))

    def test_corrupted_snapshots_load_as_empty(self):
        self._write_raw(CART_KEY, "\x00\x01garbage")
        self._write_raw(SESSION_KEY, "{\"username\": ")
        restarted = self.make_state()
        self.assertEqual(restarted.cart, [])
        self.assertIsNone(restarted.current_user)

    def test_wrong_shape_snapshots_load_as_empty(self):
        cases = [
            ({"productId": "p1"}, ["mariocas"]),
            ([{"productId": "p1", "name": "x"}], {"username": "x", "role": "owner", "name": "y"}),
            ([{"productId": "p1", "name": "x", "price": "abc", "quantity": 1}], "mariocas"),
            (42, 42),
        ]
        for cart, session in cases:
            self.storage.save(CART_KEY, cart)
            self.storage.save(SESSION_KEY, session)
            restarted = self.make_state()
            self.assertEqual(restarted.cart, [], cart)
            self.assertIsNone(restarted.current_user, session)

    def test_non_finite_cart_numbers_load_as_empty(self):
        # json.loads accepts these tokens, and 1e400 parses to inf
        lines = [
            '[{"productId": "p1", "name": "x", "price": 1, "quantity": Infinity}]',
            '[{"productId": "p1", "name": "x", "price": Infinity, "quantity": 1}]',
            '[{"productId": "p1", "name": "x", "price": NaN, "quantity": 1}]',
            '[{"productId": "p1", "name": "x", "price": 1, "quantity": 1e400}]',
        ]
        for raw in lines:
            self._write_raw(CART_KEY, raw)
            restarted = self.make_state()
            self.assertEqual(restarted.cart, [], raw)

    def test_snapshot_lines_with_non_positive_quantity_dropped(self):
        self.storage.save(
            CART_KEY,
            [
                {"productId": "p1", "name": "Café", "price": 15.5, "quantity": 0},
                {"productId": "p2", "name": "Teclado", "price": 120, "quantity": 2},
            ],
        )
        restarted = self.make_state()
        self.assertEqual([i.product_id for i in restarted.cart], ["p2"])


class StateDescriptionTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.storage = Storage(os.path.join(self.temp_dir.name, "test.sqlite"))
        self.models = GatedModels()
        client = SimpleNamespace(aio=SimpleNamespace(models=self.models))
        self.state = PosState.initial(
            self.storage, DescriptionGenerator("key", client=client)
        )

    def tearDown(self):
        self.temp_dir.cleanup()

    async def test_no_selected_product(self):
        self.assertFalse(await self.state.generate_description())
        self.assertEqual(self.models.calls, [])

    async def test_open_product_resets_description(self):
        s = self.state
        s.ai_description = "old"
        s.open_product(s.products[0])
        self.assertTrue(s.is_detail_open)
        self.assertEqual(s.selected_product.id, "p1")
        self.assertEqual(s.ai_description, "")

        s.close_product()
        self.assertFalse(s.is_detail_open)
        self.assertIsNone(s.selected_product)

    async def test_second_request_ignored_while_in_flight(self):
        s = self.state
        s.open_product(s.products[0])

        first = asyncio.create_task(s.generate_description())
        await asyncio.sleep(0)
        self.assertTrue(s.is_generating_description)

        self.assertFalse(await s.generate_description())
        self.assertEqual(len(self.models.calls), 1)

        self.models.gate.set()
        self.assertTrue(await first)
        self.assertFalse(s.is_generating_description)
        self.assertEqual(s.ai_description, "Freshly roasted joy.")
        self.assertIsNone(s.ai_error)

    async def test_result_dropped_when_selection_changes(self):
        s = self.state
        s.open_product(s.products[0])
        pending = asyncio.create_task(s.generate_description())
        await asyncio.sleep(0)

        s.open_product(s.products[1])
        self.models.gate.set()
        await pending
        self.assertEqual(s.ai_description, "")
        self.assertFalse(s.is_generating_description)

    async def test_unconfigured_generator_writes_fixed_text(self):
        with self.assertLogs("services.gemini", level="ERROR"):
            generator = DescriptionGenerator(None)
        s = PosState.initial(self.storage, generator)
        s.open_product(s.products[2])
        self.assertTrue(await s.generate_description())
        self.assertEqual(s.ai_description, UNAVAILABLE_TEXT)
        self.assertIsNotNone(s.ai_error)


if __name__ == "__main__":
    unittest.main()
